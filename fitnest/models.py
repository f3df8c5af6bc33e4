from datetime import datetime, timedelta, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String, Time

from fitnest import config
from fitnest.database import Base


def utcnow():
    # Naive UTC, matching what SQLite hands back for DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TrainerSession(Base):
    __tablename__ = "trainer_sessions"

    session_id = Column(String, primary_key=True)
    trainer_id = Column(String, nullable=False, index=True)
    customer_id = Column(String, nullable=True, index=True)   # set once booked
    price = Column(Numeric(10, 2), nullable=False)            # major currency unit
    date = Column(Date, nullable=True)
    time = Column(Time, nullable=True)
    duration = Column(Integer, nullable=True)                 # minutes
    booked = Column(Boolean, nullable=False, default=False)
    lock = Column(Boolean, nullable=False, default=False)
    held_by = Column(String, nullable=True)
    locked_at = Column(DateTime, nullable=True)
    zoom_link = Column(String, nullable=True)

    def is_held(self, ttl_seconds=None, now=None):
        """A stored lock only counts while it is younger than the checkout expiry."""
        if not self.lock or self.locked_at is None:
            return False
        ttl_seconds = config.HOLD_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        now = now or utcnow()
        return self.locked_at > now - timedelta(seconds=ttl_seconds)

    def to_dict(self):
        return {
            "session_id": self.session_id,
            "trainer_id": self.trainer_id,
            "customer_id": self.customer_id,
            "price": float(self.price) if self.price is not None else None,
            "date": self.date.isoformat() if self.date else None,
            "time": self.time.isoformat() if self.time else None,
            "duration": self.duration,
            "booked": bool(self.booked),
            "lock": bool(self.lock),
            "held": self.is_held(),
            "zoom_link": self.zoom_link,
        }


class StripeSessionPrice(Base):
    __tablename__ = "stripe_session_prices"

    session_id = Column(String, primary_key=True)             # TrainerSession.session_id
    price_id = Column(String, nullable=False)
    product_id = Column(String, nullable=False)


class StripeCustomer(Base):
    __tablename__ = "stripe_customers"

    customer_id = Column(String, primary_key=True)            # app customer id
    stripe_customer_id = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class StripeAccount(Base):
    __tablename__ = "stripe_accounts"

    user_id = Column(String, primary_key=True)                # trainer's user id
    account_id = Column(String, unique=True, nullable=False)  # Stripe connected account
    created_at = Column(DateTime, nullable=False, default=utcnow)
