# backend/tests/test_rate_limit.py
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.rate_limit import RateLimitMiddleware, SlidingWindowCounter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_window_slides():
    clock = FakeClock()
    c = SlidingWindowCounter(limit=2, window_seconds=10, clock=clock)
    assert c.hit("a") and c.hit("a")
    assert not c.hit("a")
    assert c.hit("b")

    clock.now += 10.5
    assert c.hit("a")


def test_keys_are_bounded_lru():
    c = SlidingWindowCounter(limit=1, window_seconds=60, max_keys=2, clock=FakeClock())
    c.hit("a")
    c.hit("b")
    c.hit("a")  # refreshes "a"; still over its limit
    c.hit("c")  # evicts "b"
    assert len(c) == 2
    assert c.hit("b")  # forgotten, so allowed again


def test_middleware_returns_429_envelope():
    app = FastAPI()

    @app.get("/ping")
    def ping():
        return {"ok": True}

    @app.get("/health")
    def health():
        return {"ok": True}

    app.add_middleware(
        RateLimitMiddleware,
        counter=SlidingWindowCounter(limit=1, window_seconds=60),
        exempt_paths={"/health"},
    )
    client = TestClient(app)
    assert client.get("/ping").status_code == 200
    r = client.get("/ping")
    assert r.status_code == 429
    assert r.json() == {"success": False, "error": "Too many requests, please try again later"}
    assert client.get("/health").status_code == 200
    assert client.get("/health").status_code == 200
