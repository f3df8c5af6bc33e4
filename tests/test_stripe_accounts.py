from decimal import Decimal

import stripe

from fitnest import config
from fitnest.models import StripeAccount, StripeSessionPrice
from fitnest.stripe_service import application_fee, to_minor_units


def test_create_session_price(client, mocker, db):
    product = mocker.Mock()
    product.id = "prod_123"
    price = mocker.Mock()
    price.id = "price_123"
    create_product = mocker.patch("stripe.Product.create", return_value=product)
    create_price = mocker.patch("stripe.Price.create", return_value=price)

    response = client.post("/session-price", json={"sessionId": "sess-1", "price": "49.99"})

    assert response.status_code == 200
    assert response.json() == {"session_id": "sess-1", "price_id": "price_123", "product_id": "prod_123"}
    create_product.assert_called_once()
    create_price.assert_called_once_with(unit_amount=4999, currency=config.STRIPE_CURRENCY, product="prod_123")
    assert db.get(StripeSessionPrice, "sess-1").price_id == "price_123"


def test_session_price_is_created_once(client, mocker, db):
    db.add(StripeSessionPrice(session_id="sess-1", price_id="price_old", product_id="prod_old"))
    db.commit()
    create_product = mocker.patch("stripe.Product.create")

    response = client.post("/session-price", json={"sessionId": "sess-1", "price": 30})

    assert response.json()["price_id"] == "price_old"
    create_product.assert_not_called()


def test_session_price_stripe_failure(client, mocker, db):
    mocker.patch("stripe.Product.create", side_effect=stripe.APIConnectionError("down"))

    response = client.post("/session-price", json={"sessionId": "sess-1", "price": 30})

    assert response.status_code == 500
    assert db.get(StripeSessionPrice, "sess-1") is None


def test_create_account(client, mocker, db):
    account = mocker.Mock()
    account.id = "acct_new"
    link = mocker.Mock()
    link.url = "https://connect.stripe.com/setup/e/acct_new"
    mocker.patch("stripe.Account.create", return_value=account)
    create_link = mocker.patch("stripe.AccountLink.create", return_value=link)

    response = client.post("/create-account", json={"user_id": "trainer-user-1"})

    assert response.status_code == 200
    assert response.json() == {"url": link.url, "account_id": "acct_new"}
    assert create_link.call_args.kwargs["account"] == "acct_new"
    assert create_link.call_args.kwargs["type"] == "account_onboarding"
    assert db.get(StripeAccount, "trainer-user-1").account_id == "acct_new"


def test_create_account_reuses_existing(client, mocker, db):
    db.add(StripeAccount(user_id="trainer-user-1", account_id="acct_existing"))
    db.commit()
    link = mocker.Mock()
    link.url = "https://connect.stripe.com/setup/e/acct_existing"
    create_account = mocker.patch("stripe.Account.create")
    mocker.patch("stripe.AccountLink.create", return_value=link)

    response = client.post("/create-account", json={"user_id": "trainer-user-1"})

    assert response.json()["account_id"] == "acct_existing"
    create_account.assert_not_called()


def test_health(client, trainer_client):
    assert client.get("/health").json() == {"status": "ok", "service": "payment"}
    assert trainer_client.get("/health").json() == {"status": "ok", "service": "trainer"}


def test_application_fee_is_floored():
    assert application_fee(5000) == 500
    assert application_fee(4999) == 499
    assert application_fee(9) == 0


def test_to_minor_units():
    assert to_minor_units(50) == 5000
    assert to_minor_units("19.99") == 1999
    assert to_minor_units(Decimal("0.005")) == 1
