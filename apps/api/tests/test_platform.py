from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from specyf.middleware.rate_limit import _parse_rate, is_public_write
from specyf.middleware.security_headers import headers_for


def test_health(client: TestClient):
    assert client.get("/health").json() == {"status": "ok"}


def test_request_id_is_echoed(client: TestClient):
    resp = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_security_headers(client: TestClient):
    resp = client.get("/health")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert "Cache-Control" not in resp.headers

    auth = client.post("/v1/auth/login", json={"email": "x@example.com", "password": "nope"})
    assert auth.headers["Cache-Control"] == "no-store"


def test_metrics_exposed(client: TestClient):
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_request" in resp.text


def test_service_errors_use_code_envelope(client: TestClient):
    resp = client.get("/v1/invite/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"detail": {"code": "EVENT_NOT_FOUND", "message": "event not found"}}


@pytest.mark.parametrize(
    ("rate", "expected"),
    [
        ("60/minute", (60, 60)),
        ("10/second", (10, 1)),
        ("120/hour", (120, 3600)),
        (" 5/Day ", (5, 86400)),
    ],
)
def test_parse_rate(rate, expected):
    assert _parse_rate(rate) == expected


@pytest.mark.parametrize("rate", ["60", "ten/minute", "5/fortnight"])
def test_parse_rate_rejects_bad_formats(rate):
    with pytest.raises(ValueError):
        _parse_rate(rate)


def test_public_write_paths():
    assert is_public_write("POST", "/v1/contact")
    assert is_public_write("POST", "/v1/rsvp/abc/token")
    assert is_public_write("POST", "/v1/auth/login")
    assert is_public_write("POST", "/v1/guest-auth/request-link")
    assert not is_public_write("GET", "/v1/rsvp/abc/token")
    assert not is_public_write("POST", "/v1/auth/refresh")
    assert not is_public_write("POST", "/v1/events")


def test_header_policy_by_path():
    assert "Cache-Control" not in headers_for("/v1/events")
    assert headers_for("/v1/guest/invitations")["Cache-Control"] == "no-store"
    assert "Content-Security-Policy" not in headers_for("/v1/events")
    assert headers_for("/v1/media/events/x.png")["Content-Security-Policy"].endswith("sandbox")
    # tests run with ENV=test
    assert headers_for("/health")["Strict-Transport-Security"].startswith("max-age=")
