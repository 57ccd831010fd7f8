"""Time-window checks against a caller-supplied clock.

``now`` is always passed in; nothing here reads the system clock. Drift
tolerance widens the valid window on both ends in the caller's favor and can
never narrow it.
"""
from __future__ import annotations

from ucan_tokens.errors import ValidationReason
from ucan_tokens.token.types import Payload
from ucan_tokens.validation.result import ValidationResult


def _check_drift(clock_drift_tolerance: float) -> None:
    if clock_drift_tolerance < 0:
        raise ValueError(
            f"clock_drift_tolerance must be >= 0, got {clock_drift_tolerance!r}"
        )


def is_token_expired(
    payload: Payload,
    *,
    now: float,
    clock_drift_tolerance: float = 0,
) -> bool:
    """Return True iff ``exp`` is set and ``now > exp + clock_drift_tolerance``.

    A payload without an expiration never expires by time.
    """
    _check_drift(clock_drift_tolerance)
    if payload.expiration is None:
        return False
    return now > payload.expiration + clock_drift_tolerance


def is_token_not_yet_valid(
    payload: Payload,
    *,
    now: float,
    clock_drift_tolerance: float = 0,
) -> bool:
    """Return True iff ``nbf`` is set and ``now < nbf - clock_drift_tolerance``.

    A payload without ``nbf`` is valid immediately.
    """
    _check_drift(clock_drift_tolerance)
    if payload.not_before is None:
        return False
    return now < payload.not_before - clock_drift_tolerance


def has_inverted_window(payload: Payload) -> bool:
    """Return True when both bounds are set and ``nbf`` is after ``exp``."""
    return (
        payload.not_before is not None
        and payload.expiration is not None
        and payload.not_before > payload.expiration
    )


def validate_timestamps(
    payload: Payload,
    *,
    now: float,
    clock_drift_tolerance: float = 0,
    chain_depth: int = 0,
) -> ValidationResult:
    """Check the payload's time window and report the first failure.

    Order: an inverted window (``nbf`` after ``exp``), then expiry, then
    not-yet-valid.
    """
    if has_inverted_window(payload):
        return ValidationResult.fail(
            ValidationReason.INVALID_TIME_WINDOW,
            f"not_before ({payload.not_before}) is after expiration ({payload.expiration})",
            chain_depth,
            issuer=payload.issuer,
        )
    if is_token_expired(payload, now=now, clock_drift_tolerance=clock_drift_tolerance):
        return ValidationResult.fail(
            ValidationReason.TOKEN_EXPIRED,
            f"token expired at {payload.expiration} (now {now})",
            chain_depth,
            issuer=payload.issuer,
            exp=payload.expiration,
            now=now,
        )
    if is_token_not_yet_valid(payload, now=now, clock_drift_tolerance=clock_drift_tolerance):
        return ValidationResult.fail(
            ValidationReason.TOKEN_NOT_YET_VALID,
            f"token is not valid before {payload.not_before} (now {now})",
            chain_depth,
            issuer=payload.issuer,
            nbf=payload.not_before,
            now=now,
        )
    return ValidationResult.ok(chain_depth)


__all__ = [
    "has_inverted_window",
    "is_token_expired",
    "is_token_not_yet_valid",
    "validate_timestamps",
]
