from __future__ import annotations

from unittest.mock import patch

from roster.core.config import settings
from roster.core.rate_limit import RATE_LIMIT_MESSAGE


def test_api_answers_429_once_limit_is_spent(client):
    with patch.object(settings, "RATE_LIMIT", "2/minute"):
        statuses = [client.get("/api/v1/health").status_code for _ in range(2)]
        response = client.get("/api/v1/health")

    assert statuses == [200, 200]
    assert response.status_code == 429
    assert response.json() == {"detail": RATE_LIMIT_MESSAGE}
    assert 0 <= int(response.headers["Retry-After"]) <= 60


def test_limit_is_shared_across_api_routes(client):
    with patch.object(settings, "RATE_LIMIT", "1/minute"):
        assert client.get("/api/v1/health").status_code == 200
        assert client.get("/api/v1/employees/1").status_code == 429


def test_root_is_not_rate_limited(client):
    with patch.object(settings, "RATE_LIMIT", "1/minute"):
        statuses = [client.get("/").status_code for _ in range(3)]

    assert statuses == [200, 200, 200]


def test_rate_limit_can_be_disabled(client):
    with (
        patch.object(settings, "RATE_LIMIT", "1/minute"),
        patch.object(settings, "RATE_LIMIT_ENABLED", False),
    ):
        statuses = [client.get("/api/v1/health").status_code for _ in range(3)]

    assert statuses == [200, 200, 200]
