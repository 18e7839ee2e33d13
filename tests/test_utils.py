import asyncio

import pytest

from rollizr.utils.retry import backoff_delays, retry_async
from rollizr.utils.slugify import slugify


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Cool Breeze Air Conditioning & Heating, LLC", "cool-breeze-air-conditioning-heating-llc"),
        ("  hvac_001  ", "hvac-001"),
        (42, "42"),
        (None, "company"),
        ("!!!", "company"),
    ],
)
def test_slugify(value, expected):
    assert slugify(value) == expected


def test_slugify_custom_fallback():
    assert slugify("", fallback="location") == "location"


def test_retry_succeeds_after_transient_failures():
    attempts = []

    async def flaky(location, term="HVAC"):
        attempts.append((location, term))
        if len(attempts) < 3:
            raise ConnectionError("502 Bad Gateway")
        return [{"company_id": "c1"}]

    result = asyncio.run(retry_async(flaky, "Miami, FL", term="Plumbing", initial_wait=0))
    assert result == [{"company_id": "c1"}]
    assert attempts == [("Miami, FL", "Plumbing")] * 3


def test_retry_reraises_last_error():
    calls = []

    async def always_fails():
        calls.append(1)
        raise TimeoutError("slow upstream")

    with pytest.raises(TimeoutError):
        asyncio.run(retry_async(always_fails, attempts=2, initial_wait=0))
    assert len(calls) == 2


def test_retry_ignores_unlisted_exceptions():
    calls = []

    async def bad_request():
        calls.append(1)
        raise ValueError("bad request")

    with pytest.raises(ValueError):
        asyncio.run(retry_async(bad_request, exceptions=(ConnectionError,), initial_wait=0))
    assert len(calls) == 1


def test_backoff_delays_double_up_to_cap():
    delays = backoff_delays(1.0, 5.0)
    assert [next(delays) for _ in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]
