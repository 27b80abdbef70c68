"""Tests for per-client rate limiting in api/rate_limit.py

The limiter is driven by a fake clock; the middleware is exercised through
create_app with the connectivity gate disabled.
"""

import pytest
from fastapi.testclient import TestClient
from api.app import create_app
from api.rate_limit import SlidingWindowLimiter


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def limited_app(mock_client, limit):
    mock_client.get_lights.return_value = []
    return TestClient(create_app(mock_client, check_connection=False, rate_limit=limit, rate_window=60))


class TestSlidingWindowLimiter:
    """Test the sliding window counter."""

    def test_allows_up_to_limit(self, clock):
        """The first `limit` hits should pass with a shrinking remainder."""
        limiter = SlidingWindowLimiter(3, 60, clock)

        assert limiter.hit('a') == (True, 2, 0)
        assert limiter.hit('a') == (True, 1, 0)
        assert limiter.hit('a') == (True, 0, 0)

    def test_rejects_over_limit_with_retry_after(self, clock):
        """A hit over the limit should be refused until the oldest hit expires."""
        limiter = SlidingWindowLimiter(2, 60, clock)
        limiter.hit('a')
        clock.now += 10
        limiter.hit('a')
        clock.now += 5

        assert limiter.hit('a') == (False, 0, 45)

    def test_window_slides(self, clock):
        """Hits older than the window should no longer count."""
        limiter = SlidingWindowLimiter(1, 60, clock)
        limiter.hit('a')
        clock.now += 60

        allowed, remaining, _ = limiter.hit('a')

        assert allowed is True
        assert remaining == 0

    def test_keys_are_independent(self, clock):
        """One client using up its budget should not affect another."""
        limiter = SlidingWindowLimiter(1, 60, clock)
        limiter.hit('a')

        assert limiter.hit('a')[0] is False
        assert limiter.hit('b')[0] is True

    @pytest.mark.parametrize('limit, window', [(0, 60), (10, 0)])
    def test_invalid_settings(self, limit, window):
        """A zero limit or window should be rejected."""
        with pytest.raises(ValueError):
            SlidingWindowLimiter(limit, window)


class TestRateLimitMiddleware:
    """Test the 429 responses and headers."""

    def test_under_limit_sets_headers(self, mock_client):
        """Allowed responses should carry the limit and the remaining budget."""
        http = limited_app(mock_client, 5)

        response = http.get('/api/lights')

        assert response.status_code == 200
        assert response.headers['X-RateLimit-Limit'] == '5'
        assert response.headers['X-RateLimit-Remaining'] == '4'

    def test_over_limit_returns_429(self, mock_client):
        """The request after the budget is spent should be refused."""
        http = limited_app(mock_client, 2)
        http.get('/api/lights')
        http.get('/api/lights')

        response = http.get('/api/lights')

        assert response.status_code == 429
        body = response.json()
        assert body['error'] == 'Rate limit exceeded'
        assert body['message'] == 'Too many requests. Please try again later.'
        assert 1 <= body['retry_after'] <= 60
        assert response.headers['X-RateLimit-Remaining'] == '0'
        assert response.headers['Retry-After'] == str(body['retry_after'])
        assert mock_client.get_lights.call_count == 2

    def test_forwarded_for_keys_clients(self, mock_client):
        """Clients behind a proxy should be told apart by X-Forwarded-For."""
        http = limited_app(mock_client, 1)

        first = http.get('/api/lights', headers={'X-Forwarded-For': '10.0.0.1, 172.16.0.1'})
        second = http.get('/api/lights', headers={'X-Forwarded-For': '10.0.0.2'})
        repeat = http.get('/api/lights', headers={'X-Forwarded-For': '10.0.0.1'})

        assert first.status_code == 200
        assert second.status_code == 200
        assert repeat.status_code == 429

    def test_real_ip_header(self, mock_client):
        """X-Real-IP should be used when X-Forwarded-For is absent."""
        http = limited_app(mock_client, 1)

        http.get('/api/lights', headers={'X-Real-IP': '10.0.0.7'})
        response = http.get('/api/lights', headers={'X-Real-IP': '10.0.0.7'})

        assert response.status_code == 429

    def test_disabled_with_zero_limit(self, mock_client):
        """A limit of 0 should leave responses without rate limit headers."""
        http = limited_app(mock_client, 0)

        response = http.get('/api/lights')

        assert response.status_code == 200
        assert 'X-RateLimit-Limit' not in response.headers
