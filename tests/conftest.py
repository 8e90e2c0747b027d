"""Shared fakes for the real-time channel."""

import asyncio
import json

import pytest


class FakeSocket:
    """In-memory stand-in for an open websocket connection."""

    def __init__(self):
        self.inbox = asyncio.Queue()
        self.sent = []
        self.close_code = None
        self.close_reason = ""
        self.close_delay = 0
        self.send_error = None
        self.close_calls = 0

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.inbox.get()
        if isinstance(item, tuple):
            self.close_code, self.close_reason = item
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item

    def push(self, payload):
        self.inbox.put_nowait(payload if isinstance(payload, str) else json.dumps(payload))

    def drop(self, code=1006, reason=""):
        self.inbox.put_nowait((code, reason))

    def fail(self, error):
        self.inbox.put_nowait(error)

    async def send(self, data):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)

    async def close(self, code=1000, reason=""):
        self.close_calls += 1
        if self.close_delay:
            await asyncio.sleep(self.close_delay)
        if self.close_code is None:
            self.drop(code, reason)


class FakeServer:
    """Hands out FakeSockets, or refuses connections while ``refusing`` is set."""

    def __init__(self):
        self.sockets = []
        self.attempts = 0
        self.refusing = False

    async def connect(self, url):
        self.attempts += 1
        if self.refusing:
            raise ConnectionRefusedError(f"refused {url}")
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket

    @property
    def socket(self):
        return self.sockets[-1]


@pytest.fixture
def fake_server():
    return FakeServer()


async def settle(rounds=5):
    """Let pending callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)
