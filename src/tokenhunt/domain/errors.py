"""
Error hierarchy.

Core functions raise these; the API layer maps them onto HTTP status codes and the
CLI prints them. `ValidationError` also subclasses `ValueError` so callers that only
know about builtin exceptions still catch malformed input.

Claim rejections (not found / already claimed / out of range) are normally reported
as `ClaimOutcome` values rather than raised; the exception types exist for callers
that prefer to raise them (e.g., `ClaimResult.raise_for_outcome()`).
"""

from __future__ import annotations


class TokenHuntError(Exception):
    """Base class for all TokenHunt errors."""

    code = "TOKENHUNT_ERROR"


class ValidationError(TokenHuntError, ValueError):
    """Malformed hunt definition or request payload."""

    code = "VALIDATION_ERROR"


class NotFound(TokenHuntError):
    """A referenced hunt, reward or payment reference does not exist."""

    code = "NOT_FOUND"


class AlreadyClaimed(TokenHuntError):
    """The reward's claimed flag is already set; terminal."""

    code = "ALREADY_CLAIMED"


class OutOfRange(TokenHuntError):
    """The claimant is too far from the reward."""

    code = "OUT_OF_RANGE"


class StoreUnavailable(TokenHuntError):
    """The persistence layer failed; the operation may be retried."""

    code = "STORE_UNAVAILABLE"


class PaymentServiceUnavailable(TokenHuntError):
    """The payment-status service could not be reached or returned an error."""

    code = "PAYMENT_SERVICE_UNAVAILABLE"
