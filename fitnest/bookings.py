"""Hold/book/release transitions, each a single conditional UPDATE."""
import logging
import uuid
from datetime import timedelta
from enum import Enum

from sqlalchemy import or_, update

from fitnest import config
from fitnest.models import TrainerSession, utcnow

logger = logging.getLogger(__name__)


class HoldResult(str, Enum):
    HELD = "held"
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "not_found"


class BookingResult(str, Enum):
    BOOKED = "booked"
    ALREADY_BOOKED = "already_booked"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


def add_session(db, data: dict):
    session = TrainerSession(
        session_id=data.get("session_id") or str(uuid.uuid4()),
        trainer_id=data["trainer_id"],
        price=data["price"],
        date=data.get("date"),
        time=data.get("time"),
        duration=data.get("duration"),
        zoom_link=data.get("zoom_link"),
        booked=False,
        lock=False,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def get_session(db, session_id):
    return db.get(TrainerSession, session_id)


def hold_session(db, session_id, customer_id, ttl_seconds=None):
    """Take the hold if the slot is free, or if the previous hold has outlived checkout."""
    ttl_seconds = config.HOLD_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    now = utcnow()
    stale_before = now - timedelta(seconds=ttl_seconds)

    result = db.execute(
        update(TrainerSession)
        .where(
            TrainerSession.session_id == session_id,
            TrainerSession.booked.is_(False),
            or_(
                TrainerSession.lock.is_(False),
                TrainerSession.locked_at.is_(None),
                TrainerSession.locked_at <= stale_before,
            ),
        )
        .values(lock=True, held_by=customer_id, locked_at=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    session = db.get(TrainerSession, session_id)
    if result.rowcount == 1:
        logger.info("Session %s held for customer %s", session_id, customer_id)
        return HoldResult.HELD, session
    if session is None:
        return HoldResult.NOT_FOUND, None
    logger.info("Hold refused for session %s (booked=%s, lock=%s)", session_id, session.booked, session.lock)
    return HoldResult.UNAVAILABLE, session


def release_session(db, session_id, customer_id=None):
    """Clear the hold. Releasing a session that is not held is a no-op, not an error.

    With customer_id, a hold taken over by another customer is left alone.
    """
    statement = update(TrainerSession).where(TrainerSession.session_id == session_id)
    if customer_id:
        statement = statement.where(
            or_(TrainerSession.held_by.is_(None), TrainerSession.held_by == customer_id)
        )
    result = db.execute(
        statement
        .values(lock=False, held_by=None, locked_at=None)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    session = db.get(TrainerSession, session_id)
    if result.rowcount == 1:
        logger.info("Session %s released", session_id)
    elif session is not None:
        logger.info("Session %s is held by %s, not releasing for %s", session_id, session.held_by, customer_id)
    return session


def book_session(db, session_id, customer_id):
    result = db.execute(
        update(TrainerSession)
        .where(
            TrainerSession.session_id == session_id,
            TrainerSession.booked.is_(False),
        )
        .values(booked=True, customer_id=customer_id, lock=False, held_by=None, locked_at=None)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    session = db.get(TrainerSession, session_id)
    if result.rowcount == 1:
        logger.info("Session %s booked by customer %s", session_id, customer_id)
        return BookingResult.BOOKED, session
    if session is None:
        return BookingResult.NOT_FOUND, None
    if session.customer_id == customer_id:
        return BookingResult.ALREADY_BOOKED, session
    logger.warning(
        "Session %s already booked by %s, refusing booking for %s",
        session_id, session.customer_id, customer_id,
    )
    return BookingResult.CONFLICT, session
