import httpx
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app import config, rate_limiter
from app.domain.payments import ColectivaPaymentsService, PaymentProviderError
from app.rate_limiter import check_rate_limit, create_rate_limiter


class FakeRedis:
    """Just enough of redis-py for a fixed-window counter"""

    def __init__(self):
        self.counts = {}
        self.ttls = {}

    def pipeline(self):
        return FakePipeline(self)

    def expire(self, key, seconds):
        self.ttls[key] = seconds


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.ops = []

    def incr(self, key):
        self.ops.append(("incr", key))

    def ttl(self, key):
        self.ops.append(("ttl", key))

    def execute(self):
        results = []
        for op, key in self.ops:
            if op == "incr":
                self.redis.counts[key] = self.redis.counts.get(key, 0) + 1
                results.append(self.redis.counts[key])
            else:
                results.append(self.redis.ttls.get(key, -1))
        return results


class TestRateLimiter:
    def test_fixed_window(self):
        redis = FakeRedis()

        assert check_rate_limit("k", 2, 60, redis) == (True, 1, 60)
        assert check_rate_limit("k", 2, 60, redis) == (True, 2, 60)
        assert check_rate_limit("k", 2, 60, redis) == (False, 3, 60)
        assert check_rate_limit("other", 2, 60, redis)[0] is True

    @pytest.fixture
    def limited_app(self, monkeypatch):
        redis = FakeRedis()
        monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", True)
        monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: redis)

        app = FastAPI()
        limit = create_rate_limiter(limit=1, window_seconds=30, key_prefix="test")

        @app.post("/thing")
        async def thing(_: None = Depends(limit)):
            return {"ok": True}

        return TestClient(app)

    def test_second_request_is_rejected(self, limited_app):
        assert limited_app.post("/thing").status_code == 200

        response = limited_app.post("/thing")
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"

    def test_limits_are_per_client_ip(self, limited_app):
        assert limited_app.post("/thing", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
        assert limited_app.post("/thing", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200


class TestColectivaPayments:
    def test_mock_mode_without_credentials(self):
        payments = ColectivaPaymentsService(api_url="", api_key="")

        assert not payments.is_configured()
        escrow = payments.create_escrow(7, 50000, client_id=1, therapist_id=2, description="Massage")
        assert escrow == {"escrow_id": "mock_escrow_7", "payment_url": "/booking/7/pay-mock"}
        assert payments.refund_escrow("mock_escrow_7", 25000)["amount_refunded_cents"] == 25000

    def test_create_escrow_posts_booking(self, monkeypatch):
        sent = {}

        def fake_post(url, json, headers, timeout):
            sent.update(url=url, json=json, headers=headers)
            return httpx.Response(201, json={"id": "esc_1", "payment_url": "https://pay.example/esc_1"})

        monkeypatch.setattr(httpx, "post", fake_post)
        payments = ColectivaPaymentsService(api_url="https://api.example/", api_key="secret")

        escrow = payments.create_escrow(7, 50000, client_id=1, therapist_id=2, description="Massage")

        assert escrow == {"escrow_id": "esc_1", "payment_url": "https://pay.example/esc_1"}
        assert sent["url"] == "https://api.example/escrows"
        assert sent["json"]["amount_cents"] == 50000
        assert sent["json"]["currency"] == "MXN"
        assert sent["headers"]["Authorization"] == "Bearer secret"

    def test_provider_rejection(self, monkeypatch):
        monkeypatch.setattr(
            httpx, "post", lambda *a, **kw: httpx.Response(422, json={"message": "Escrow already released"})
        )
        payments = ColectivaPaymentsService(api_url="https://api.example", api_key="secret")

        with pytest.raises(PaymentProviderError, match="already released"):
            payments.release_escrow("esc_1", 2500)

    def test_provider_unreachable(self, monkeypatch):
        def fail(*args, **kwargs):
            raise httpx.ConnectError("connection refused")

        monkeypatch.setattr(httpx, "post", fail)
        payments = ColectivaPaymentsService(api_url="https://api.example", api_key="secret")

        with pytest.raises(PaymentProviderError):
            payments.refund_escrow("esc_1", 1000)
