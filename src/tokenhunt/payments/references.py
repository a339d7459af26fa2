"""
Sponsor payment references.

A sponsor funding a hunt first asks for a one-time reference, pays with it, then asks us to
confirm the transaction. References are store-backed records with an expiry, so a restart
or a second server process does not lose them.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from tokenhunt.core.time import utc_now
from tokenhunt.domain.errors import NotFound, ValidationError
from tokenhunt.domain.models import PaymentConfirmation, PaymentReference
from tokenhunt.payments.client import PaymentStatusClient
from tokenhunt.storage.base import Store

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_TTL_SECONDS = 600


def _normalize_amount(amount: str | float | int) -> str:
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid payment amount: {amount!r}") from exc
    if not value.is_finite() or value <= 0:
        raise ValidationError(f"Payment amount must be > 0 (got {amount!r})")
    return str(value)


def initiate_payment(
    amount: str | float | int,
    *,
    store: Store,
    ttl_seconds: int = DEFAULT_REFERENCE_TTL_SECONDS,
    now: datetime | None = None,
) -> PaymentReference:
    """Create and persist a fresh payment reference valid for `ttl_seconds`."""
    created_at = now or utc_now()
    store.purge_expired_payment_references(created_at)
    ref = PaymentReference(
        reference=uuid.uuid4().hex,
        amount=_normalize_amount(amount),
        created_at=created_at,
        expires_at=created_at + timedelta(seconds=ttl_seconds),
    )
    store.put_payment_reference(ref)
    logger.info("Payment initiated: reference=%s amount=%s", ref.reference, ref.amount)
    return ref


def confirm_payment(
    reference: str,
    transaction_id: str,
    *,
    store: Store,
    client: PaymentStatusClient,
    now: datetime | None = None,
) -> PaymentConfirmation:
    """Confirm that `transaction_id` paid against `reference`.

    The reference must exist and be unexpired (`NotFound` otherwise). It is consumed only when
    the transaction matches and has not failed, so a failed attempt can be retried.
    """
    reference = (reference or "").strip()
    if not reference:
        raise ValidationError("reference is required")

    current = now or utc_now()
    ref = store.get_payment_reference(reference)
    if ref is None or ref.is_expired(current):
        if ref is not None:
            store.consume_payment_reference(reference)
        raise NotFound(f"Payment reference {reference} not found or expired")

    status = client.get_payment_status(transaction_id)
    matched = status.reference == reference and (status.status or "").lower() != "failed"

    if matched and store.consume_payment_reference(reference) is not None:
        logger.info("Payment confirmed: reference=%s transaction=%s", reference, transaction_id)
        return PaymentConfirmation(
            success=True, reference=reference, transaction_id=transaction_id, status=status.status
        )

    logger.warning(
        "Payment not confirmed: reference=%s transaction=%s status=%s returned_reference=%s",
        reference,
        transaction_id,
        status.status,
        status.reference,
    )
    return PaymentConfirmation(
        success=False, reference=reference, transaction_id=transaction_id, status=status.status
    )
