"""Burst limit on the code endpoints"""
from fastapi import FastAPI
from fastapi.testclient import TestClient

from bookwell.api.middleware.rate_limit_middleware import RateLimitMiddleware


def make_client(limit):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, requests_per_minute=limit)

    @app.post("/api/auth/send-otp")
    def send_otp():
        return {"ok": True}

    @app.post("/api/appointments/create")
    def create():
        return {"ok": True}

    return TestClient(app)


def test_otp_route_is_limited_per_client():
    client = make_client(2)
    assert client.post("/api/auth/send-otp").status_code == 200
    assert client.post("/api/auth/send-otp").status_code == 200

    response = client.post("/api/auth/send-otp")
    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"
    assert int(response.headers["Retry-After"]) >= 1


def test_other_routes_are_not_limited():
    client = make_client(1)
    for _ in range(3):
        assert client.post("/api/appointments/create").status_code == 200


def test_idle_clients_are_forgotten():
    limiter = RateLimitMiddleware(FastAPI(), requests_per_minute=5)
    limiter.request_times = {
        "10.0.0.1:/api/auth/send-otp": [100.0],
        "10.0.0.2:/api/auth/send-otp": [100.0, 150.0],
    }

    limiter.prune(current_time=170.0)

    assert list(limiter.request_times) == ["10.0.0.2:/api/auth/send-otp"]
    assert limiter.last_prune == 170.0
