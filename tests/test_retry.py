from __future__ import annotations

import pytest

from app.config import BulkUploadSettings
from app.services.retry import BackoffPolicy


def test_default_policy_allows_one_retry() -> None:
    policy = BackoffPolicy()
    assert policy.max_attempts == 2
    assert policy.should_retry(1)
    assert not policy.should_retry(2)


@pytest.mark.parametrize(
    "failed_attempt, expected",
    [
        (1, 1.0),
        (2, 2.0),
        (3, 4.0),
        (4, 8.0),
        (5, 10.0),
        (9, 10.0),
    ],
)
def test_delay_doubles_up_to_ceiling(failed_attempt: int, expected: float) -> None:
    assert BackoffPolicy(max_attempts=10).delay_after(failed_attempt) == expected


def test_from_settings() -> None:
    policy = BackoffPolicy.from_settings(
        BulkUploadSettings(
            max_attempts=3,
            backoff_initial_seconds=0.5,
            backoff_multiplier=3.0,
            backoff_max_seconds=2.0,
        )
    )
    assert policy.max_attempts == 3
    assert policy.delay_after(1) == 0.5
    assert policy.delay_after(2) == 1.5
    assert policy.delay_after(3) == 2.0


def test_rejects_invalid_bounds() -> None:
    with pytest.raises(ValueError):
        BackoffPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        BackoffPolicy().delay_after(0)
