import logging
from urllib.parse import quote, urlparse

import stripe
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse

from fitnest import config, stripe_service
from fitnest.auth import verify_token
from fitnest.database import SessionLocal
from fitnest.finalization import finalize_booking, is_paid
from fitnest.mappings import (
    add_session_price,
    add_stripe_account,
    add_stripe_customer,
    find_session_price,
    find_stripe_account,
    find_stripe_customer,
)
from fitnest.schemas import CreateAccountRequest, SessionPaymentRequest, SessionPriceRequest
from fitnest.trainer_client import TrainerServiceClient, get_trainer_client, response_message

logger = logging.getLogger(__name__)

router = APIRouter()

HOLD_REFUSED = "Unable to hold session. It may already be booked."
PRICE_NOT_FOUND = "Price ID not found for this plan"
ACCOUNT_NOT_FOUND = "Stripe Account not found for user"
UNEXPECTED_ERROR = "An unexpected error occurred"

USER_DASHBOARD_PATH = "/dashboard/user"


def _error(status_code: int, message: str):
    return JSONResponse(status_code=status_code, content={"error": message})


def _safe_redirect(target: str) -> str:
    """Only follow redirects back into our own frontend."""
    if not target:
        return config.DOMAIN
    parsed = urlparse(target)
    if not parsed.scheme and not parsed.netloc and target.startswith("/") and not target.startswith("//"):
        return target
    home = urlparse(config.DOMAIN)
    if (parsed.scheme, parsed.netloc) == (home.scheme, home.netloc):
        return target
    logger.warning("Refusing off-site redirect to %s", target)
    return config.DOMAIN


def _checkout_urls(session_id: str, customer_id: str):
    back_to_app = quote(f"{config.DOMAIN}{USER_DASHBOARD_PATH}", safe="")
    base = config.PAYMENT_SERVICE_BASE_URL
    # Stripe substitutes {CHECKOUT_SESSION_ID} itself
    success_url = f"{base}/sessionpayment/success?cs={{CHECKOUT_SESSION_ID}}&redirect={back_to_app}"
    cancel_url = (
        f"{base}/sessionpayment/cancel?sessionId={quote(session_id, safe='')}"
        f"&customerId={quote(customer_id, safe='')}&redirect={back_to_app}"
    )
    return success_url, cancel_url


def _resolve_stripe_customer(db, customer_id: str, email: str) -> str:
    mapping = find_stripe_customer(db, customer_id)
    if mapping:
        return mapping.stripe_customer_id

    customer = stripe_service.create_customer(email, customer_id)
    add_stripe_customer(db, customer_id, customer.id)
    logger.info("Created Stripe customer %s for customer %s", customer.id, customer_id)
    return customer.id


@router.post("/sessionpayment")
def session_payment(
    request: SessionPaymentRequest,
    background_tasks: BackgroundTasks,
    trainer: TrainerServiceClient = Depends(get_trainer_client),
    auth=Depends(verify_token)
):
    db = SessionLocal()
    try:
        hold = trainer.hold_session(request.sessionId, request.customer_id)
        if not hold.is_success:
            return _error(hold.status_code, response_message(hold, HOLD_REFUSED))

        stripe_customer_id = _resolve_stripe_customer(db, request.customer_id, request.email)

        session_price = find_session_price(db, request.sessionId)
        if not session_price:
            background_tasks.add_task(trainer.release_session_quietly, request.sessionId, request.customer_id)
            return {"error": PRICE_NOT_FOUND}

        account = find_stripe_account(db, request.user_id)
        if not account:
            background_tasks.add_task(trainer.release_session_quietly, request.sessionId, request.customer_id)
            return {"error": ACCOUNT_NOT_FOUND}

        price = stripe_service.retrieve_price(session_price.price_id)
        metadata = {
            "trainer_session_id": request.sessionId,
            "app_customer_id": request.customer_id,
            "trainer_user_id": request.user_id,
        }
        success_url, cancel_url = _checkout_urls(request.sessionId, request.customer_id)

        checkout = stripe_service.create_session_checkout(
            customer=stripe_customer_id,
            price_id=session_price.price_id,
            account_id=account.account_id,
            fee_amount=stripe_service.application_fee(price.unit_amount),
            metadata=metadata,
            success_url=success_url,
            cancel_url=cancel_url,
        )
    except Exception:
        logger.exception("Checkout for session %s failed, releasing hold", request.sessionId)
        db.rollback()
        background_tasks.add_task(trainer.release_session_quietly, request.sessionId, request.customer_id)
        return _error(500, UNEXPECTED_ERROR)
    finally:
        db.close()

    logger.info("Checkout %s created for session %s", checkout.id, request.sessionId)
    return {"url": checkout.url}


@router.get("/sessionpayment/success")
def session_payment_success(
    cs: str = None,
    session_id: str = None,
    checkout_session_id: str = None,
    redirect: str = None,
    trainer: TrainerServiceClient = Depends(get_trainer_client)
):
    checkout_id = cs or session_id or checkout_session_id
    if not checkout_id:
        return _error(400, "Missing checkout session id (cs)")

    try:
        checkout = stripe_service.retrieve_checkout_session(checkout_id)
    except stripe.StripeError:
        logger.exception("Could not retrieve checkout %s", checkout_id)
        return _error(500, "Internal server error")

    if is_paid(checkout):
        finalize_booking(trainer, checkout, source="redirect")
    else:
        logger.info("Checkout %s not paid yet, leaving finalization to the webhook", checkout_id)

    return RedirectResponse(_safe_redirect(redirect), status_code=302)


@router.get("/sessionpayment/cancel")
def session_payment_cancel(
    background_tasks: BackgroundTasks,
    session_id: str = Query(None, alias="sessionId"),
    customer_id: str = Query(None, alias="customerId"),
    redirect: str = None,
    trainer: TrainerServiceClient = Depends(get_trainer_client)
):
    if not session_id:
        return _error(400, "sessionId is required")

    # A hold since taken by another customer is left alone
    background_tasks.add_task(trainer.release_session_quietly, session_id, customer_id)
    return RedirectResponse(_safe_redirect(redirect), status_code=302)


@router.post("/session-price")
def create_session_price(request: SessionPriceRequest, auth=Depends(verify_token)):
    db = SessionLocal()
    try:
        mapping = find_session_price(db, request.sessionId)
        if not mapping:
            product, price = stripe_service.create_session_price(request.price, request.sessionId)
            mapping = add_session_price(db, request.sessionId, price.id, product.id)
            logger.info("Created Stripe price %s for session %s", price.id, request.sessionId)

        return {"session_id": mapping.session_id, "price_id": mapping.price_id, "product_id": mapping.product_id}
    except stripe.StripeError:
        logger.exception("Could not create Stripe price for session %s", request.sessionId)
        return _error(500, UNEXPECTED_ERROR)
    finally:
        db.close()


@router.post("/create-account")
def create_account(request: CreateAccountRequest, auth=Depends(verify_token)):
    db = SessionLocal()
    try:
        mapping = find_stripe_account(db, request.user_id)
        if mapping:
            account_id = mapping.account_id
        else:
            account = stripe_service.create_connected_account()
            add_stripe_account(db, request.user_id, account.id)
            account_id = account.id
            logger.info("Created connected account %s for user %s", account_id, request.user_id)

        link = stripe_service.create_onboarding_link(account_id)
        return {"url": link.url, "account_id": account_id}
    except stripe.StripeError:
        logger.exception("Could not onboard user %s", request.user_id)
        return _error(500, UNEXPECTED_ERROR)
    finally:
        db.close()
