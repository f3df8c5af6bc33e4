import time
from decimal import Decimal, ROUND_HALF_UP

import stripe

from fitnest import config

stripe.api_key = config.STRIPE_SECRET_KEY


def to_minor_units(amount) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def application_fee(unit_amount: int) -> int:
    # Floor of the platform's cut, in minor units
    return unit_amount * config.APPLICATION_FEE_PERCENT // 100


def create_customer(email: str, customer_id: str):
    return stripe.Customer.create(email=email, metadata={"customer_id": customer_id})


def create_session_price(price, session_id: str):
    product = stripe.Product.create(name="trainer session", metadata={"trainer_session_id": session_id})
    stripe_price = stripe.Price.create(
        unit_amount=to_minor_units(price),
        currency=config.STRIPE_CURRENCY,
        product=product.id,
    )
    return product, stripe_price


def retrieve_price(price_id: str):
    return stripe.Price.retrieve(price_id)


def create_session_checkout(
    customer: str,
    price_id: str,
    account_id: str,
    fee_amount: int,
    metadata: dict,
    success_url: str,
    cancel_url: str,
):
    return stripe.checkout.Session.create(
        mode="payment",
        payment_method_types=["card"],
        customer=customer,
        line_items=[{"price": price_id, "quantity": 1}],
        payment_intent_data={
            "transfer_data": {"destination": account_id},
            "application_fee_amount": fee_amount,
            "metadata": metadata,
        },
        metadata=metadata,
        expires_at=int(time.time()) + config.CHECKOUT_EXPIRY_SECONDS,
        success_url=success_url,
        cancel_url=cancel_url,
    )


def retrieve_checkout_session(checkout_session_id: str):
    return stripe.checkout.Session.retrieve(checkout_session_id)


def retrieve_payment_intent(payment_intent_id: str):
    return stripe.PaymentIntent.retrieve(payment_intent_id)


def create_connected_account():
    return stripe.Account.create(type="express")


def create_onboarding_link(account_id: str):
    return stripe.AccountLink.create(
        account=account_id,
        refresh_url=f"{config.DOMAIN}/onboarding/refresh",
        return_url=f"{config.DOMAIN}/onboarding/complete",
        type="account_onboarding",
    )
