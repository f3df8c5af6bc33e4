from fitnest.models import StripeAccount, StripeCustomer, StripeSessionPrice


def find_stripe_customer(db, customer_id):
    return db.get(StripeCustomer, customer_id)


def add_stripe_customer(db, customer_id, stripe_customer_id):
    mapping = StripeCustomer(customer_id=customer_id, stripe_customer_id=stripe_customer_id)
    db.add(mapping)
    db.commit()
    return mapping


def find_session_price(db, session_id):
    return db.get(StripeSessionPrice, session_id)


def add_session_price(db, session_id, price_id, product_id):
    mapping = StripeSessionPrice(session_id=session_id, price_id=price_id, product_id=product_id)
    db.add(mapping)
    db.commit()
    return mapping


def find_stripe_account(db, user_id):
    return db.get(StripeAccount, user_id)


def add_stripe_account(db, user_id, account_id):
    mapping = StripeAccount(user_id=user_id, account_id=account_id)
    db.add(mapping)
    db.commit()
    return mapping
