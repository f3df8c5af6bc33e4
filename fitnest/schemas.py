import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator


def _id_as_str(value):
    # Ids arrive as numbers from some callers and as strings from others
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class HoldRequest(BaseModel):
    sessionId: Optional[str] = None
    customerId: Optional[str] = None

    @field_validator("sessionId", "customerId", mode="before")
    @classmethod
    def ids_as_str(cls, value):
        return _id_as_str(value)


class BookRequest(HoldRequest):
    pass


class ReleaseRequest(BaseModel):
    sessionId: Optional[str] = None
    customerId: Optional[str] = None

    @field_validator("sessionId", "customerId", mode="before")
    @classmethod
    def ids_as_str(cls, value):
        return _id_as_str(value)


class AddSessionRequest(BaseModel):
    session_id: Optional[str] = None
    trainer_id: str
    price: Decimal
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    duration: Optional[int] = None
    zoom_link: Optional[str] = None

    @field_validator("session_id", "trainer_id", mode="before")
    @classmethod
    def ids_as_str(cls, value):
        return _id_as_str(value)


class SessionPaymentRequest(BaseModel):
    sessionId: str
    customer_id: str
    user_id: str
    email: Optional[str] = None

    @field_validator("sessionId", "customer_id", "user_id", mode="before")
    @classmethod
    def ids_as_str(cls, value):
        return _id_as_str(value)


class SessionPriceRequest(BaseModel):
    sessionId: str
    price: Decimal

    @field_validator("sessionId", mode="before")
    @classmethod
    def ids_as_str(cls, value):
        return _id_as_str(value)


class CreateAccountRequest(BaseModel):
    user_id: str

    @field_validator("user_id", mode="before")
    @classmethod
    def ids_as_str(cls, value):
        return _id_as_str(value)
