"""Turning Stripe checkout outcomes into booking transitions."""
import logging

import httpx
import stripe

from fitnest import stripe_service

logger = logging.getLogger(__name__)

FINALIZE_EVENTS = frozenset({
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
})

RELEASE_EVENTS = frozenset({
    "checkout.session.expired",
    "checkout.session.async_payment_failed",
    "payment_intent.payment_failed",
    "charge.refunded",
})


def stripe_field(obj, key):
    # StripeObject supports `in` and subscripts but has no .get()
    if obj is None or key not in obj:
        return None
    return obj[key]


def is_paid(checkout_session) -> bool:
    return (
        stripe_field(checkout_session, "payment_status") == "paid"
        or stripe_field(checkout_session, "status") == "complete"
    )


def resolve_booking_metadata(obj):
    """Return (trainer_session_id, app_customer_id) from the object, else from its PaymentIntent."""
    metadata = stripe_field(obj, "metadata")
    session_id = stripe_field(metadata, "trainer_session_id")
    customer_id = stripe_field(metadata, "app_customer_id")

    intent = stripe_field(obj, "payment_intent")
    if (not session_id or not customer_id) and intent:
        if isinstance(intent, str):
            intent = stripe_service.retrieve_payment_intent(intent)
        intent_metadata = stripe_field(intent, "metadata")
        session_id = session_id or stripe_field(intent_metadata, "trainer_session_id")
        customer_id = customer_id or stripe_field(intent_metadata, "app_customer_id")

    return session_id, customer_id


def _already_booked(response) -> bool:
    try:
        body = response.json()
    except ValueError:
        return False
    return isinstance(body, dict) and bool(body.get("alreadyBooked"))


def finalize_booking(trainer, obj, source: str) -> bool:
    try:
        session_id, customer_id = resolve_booking_metadata(obj)
    except stripe.StripeError:
        logger.exception("[%s] Could not load PaymentIntent for %s", source, stripe_field(obj, "id"))
        return False

    if not session_id or not customer_id:
        logger.warning("[%s] %s carries no booking metadata, nothing to finalize", source, stripe_field(obj, "id"))
        return False

    try:
        response = trainer.book_session(session_id, customer_id)
    except httpx.HTTPError:
        logger.exception("[%s] Failed to finalize booking for session %s", source, session_id)
        return False

    if not response.is_success:
        # Payment has been taken at this point; refunds are reconciled by hand
        logger.error(
            "[%s] Booking of session %s for customer %s refused after payment: %s %s",
            source, session_id, customer_id, response.status_code, response.text,
        )
        return False

    if _already_booked(response):
        logger.info("[%s] Session %s was already finalized for customer %s", source, session_id, customer_id)
    else:
        logger.info("[%s] Session %s finalized for customer %s", source, session_id, customer_id)
    return True


def release_for(trainer, obj, source: str) -> bool:
    try:
        session_id, customer_id = resolve_booking_metadata(obj)
    except stripe.StripeError:
        logger.exception("[%s] Could not load PaymentIntent for %s", source, stripe_field(obj, "id"))
        return False

    if not session_id:
        logger.info("[%s] %s is not tied to a trainer session", source, stripe_field(obj, "id"))
        return False

    return trainer.release_session_quietly(session_id, customer_id)


def handle_event(trainer, event):
    event_type = event["type"]
    obj = event["data"]["object"]

    if event_type in FINALIZE_EVENTS:
        if event_type == "checkout.session.completed" and stripe_field(obj, "payment_status") == "unpaid":
            # Delayed payment methods report completion before funds arrive
            logger.info("[webhook] Checkout %s completed but unpaid, waiting for async payment", stripe_field(obj, "id"))
            return False
        return finalize_booking(trainer, obj, source="webhook")

    if event_type in RELEASE_EVENTS:
        return release_for(trainer, obj, source="webhook")

    logger.debug("[webhook] Ignoring Stripe event %s", event_type)
    return False
