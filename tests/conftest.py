"""Shared fakes: an HTTP session that never touches the network, and a clock."""

import json
import threading
from typing import Any, Dict, List, Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from openaq_dashboard.core.cache import SimpleCache
from openaq_dashboard.core.client import OpenAQClient


def make_response(
    status: int = 200,
    body: Any = None,
    *,
    text: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    res = requests.Response()
    res.status_code = status
    raw = text if text is not None else json.dumps(body if body is not None else {"results": []})
    res._content = raw.encode("utf-8")
    res.encoding = "utf-8"
    res.headers = CaseInsensitiveDict(headers or {})
    return res


class FakeSession:
    """Stands in for requests.Session; replies from a queue, repeats the last reply.

    ``routes`` maps a URL suffix to a fixed reply, for concurrent callers whose
    order is not deterministic.
    """

    def __init__(self, *replies: Any) -> None:
        self.replies: List[Any] = list(replies) or [make_response()]
        self.routes: Dict[str, Any] = {}
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def get(self, url, params=None, headers=None, timeout=None):
        with self._lock:
            self.calls.append(
                {"url": url, "params": params, "headers": headers, "timeout": timeout}
            )
            matches = [s for s in self.routes if url.endswith(s)]
            if matches:
                reply = self.routes[max(matches, key=len)]
            elif len(self.replies) > 1:
                reply = self.replies.pop(0)
            else:
                reply = self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session, clock):
    return OpenAQClient(
        "https://api.example.test/",
        "secret-key",
        cache=SimpleCache(clock=clock),
        session=session,
    )
