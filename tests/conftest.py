"""Pytest configuration and fixtures for crowny tests."""

import threading
import time

import pytest

from crowny.client import CrownyClient
from crowny.config import ClientConfig
from crowny.transport import TransportError, TransportResponse


class FakeTransport:
    """In-memory transport answering per subject.

    `replies` maps a subject to a response body dict or an exception to
    raise. `delays` maps a subject to seconds to sleep before answering.
    """

    def __init__(self, replies=None, delays=None, default=None, header=None):
        self.replies = replies or {}
        self.delays = delays or {}
        self.default = default if default is not None else {"state": "P"}
        self.header = header
        self.calls = []
        self.completed = []
        self._lock = threading.Lock()

    def send(self, body, header):
        subject = body["subject"]
        with self._lock:
            self.calls.append((body, header))

        delay = self.delays.get(subject, 0)
        if delay:
            time.sleep(delay)

        reply = self.replies.get(subject, self.default)
        with self._lock:
            self.completed.append(subject)

        if isinstance(reply, Exception):
            raise reply
        return TransportResponse(body=reply, header=self.header)

    def ping(self):
        return {"service": "crowny"}


class UnreachableTransport(FakeTransport):
    """Transport whose every call fails to connect."""

    def send(self, body, header):
        raise TransportError("Connection to http://localhost:7293 failed: connection refused")

    def ping(self):
        raise TransportError("Service unreachable: connection refused")


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(fake_transport: FakeTransport) -> CrownyClient:
    """Client wired to the in-memory transport."""
    return CrownyClient(config=ClientConfig(), transport=fake_transport)


@pytest.fixture
def sample_program() -> str:
    """Bilingual program mixing Korean and English tokens."""
    return """; sample program
넣어 6
push 7
곱해
dup
add
종료
push 999
"""
