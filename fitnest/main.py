import logging

import stripe
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from fitnest import config
from fitnest.config import configure_logging
from fitnest.database import Base, engine
from fitnest.finalization import handle_event, stripe_field
from fitnest.routes import router
from fitnest.trainer_client import TrainerServiceClient, get_trainer_client

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="FitNest Payment Service")

app.include_router(router)

Base.metadata.create_all(bind=engine)


@app.get("/health")
def health():
    return {"status": "ok", "service": "payment"}


@app.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None),
    trainer: TrainerServiceClient = Depends(get_trainer_client)
):
    if not config.STRIPE_WEBHOOK_SECRET:
        logger.error("STRIPE_WEBHOOK_SECRET is not set, rejecting webhook")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    payload = await request.body()

    try:
        event = stripe.Webhook.construct_event(
            payload,
            stripe_signature,
            config.STRIPE_WEBHOOK_SECRET
        )
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payload")
    except stripe.SignatureVerificationError:
        raise HTTPException(status_code=400, detail="Invalid signature")

    # Stripe retries anything but a 2xx; failures here are ours to reconcile
    try:
        await run_in_threadpool(handle_event, trainer, event)
    except Exception:
        logger.exception("Webhook handler error for event %s", stripe_field(event, "type"))

    return {"received": True}
