from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from fitnest.auth import verify_token
from fitnest.bookings import (
    BookingResult,
    HoldResult,
    add_session,
    book_session,
    get_session,
    hold_session,
    release_session,
)
from fitnest.database import SessionLocal
from fitnest.schemas import AddSessionRequest, BookRequest, HoldRequest, ReleaseRequest

router = APIRouter()


def _failure(status_code: int, message: str):
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.post("/addsession")
def add_session_api(request: AddSessionRequest, auth=Depends(verify_token)):
    db = SessionLocal()
    try:
        session = add_session(db, request.model_dump())
        return {"message": "Trainer session created successfully", "session": session.to_dict()}
    except IntegrityError:
        db.rollback()
        return _failure(409, "Trainer session already exists")
    finally:
        db.close()


@router.get("/getsessionbysessionid/{session_id}")
def get_session_api(session_id: str, auth=Depends(verify_token)):
    db = SessionLocal()
    try:
        session = get_session(db, session_id)
        if not session:
            return _failure(404, "Trainer Session not found")
        return {"message": "Trainer Session retrieved successfully", "session": session.to_dict()}
    finally:
        db.close()


@router.post("/holdsession")
def hold_session_api(request: HoldRequest, auth=Depends(verify_token)):
    if not request.sessionId or not request.customerId:
        return _failure(400, "sessionId and customerId are required")

    db = SessionLocal()
    try:
        outcome, session = hold_session(db, request.sessionId, request.customerId)
        if outcome is HoldResult.NOT_FOUND:
            return _failure(404, "Session not found")
        if outcome is HoldResult.UNAVAILABLE:
            return _failure(409, "Session is already booked")
        return {"success": True, "session": session.to_dict()}
    finally:
        db.close()


@router.post("/releasesession")
def release_session_api(request: ReleaseRequest, auth=Depends(verify_token)):
    if not request.sessionId:
        return _failure(400, "sessionId is required")

    db = SessionLocal()
    try:
        session = release_session(db, request.sessionId, request.customerId)
        if not session:
            return _failure(404, "Session not found")
        return {"success": True, "session": session.to_dict()}
    finally:
        db.close()


@router.post("/booksession")
def book_session_api(request: BookRequest, auth=Depends(verify_token)):
    if not request.sessionId or not request.customerId:
        return _failure(400, "sessionId and customerId are required")

    db = SessionLocal()
    try:
        outcome, session = book_session(db, request.sessionId, request.customerId)
        if outcome is BookingResult.NOT_FOUND:
            return _failure(404, "Session not found")
        if outcome is BookingResult.CONFLICT:
            return _failure(409, "Session is already booked by another customer")
        return {
            "success": True,
            "alreadyBooked": outcome is BookingResult.ALREADY_BOOKED,
            "session": session.to_dict(),
        }
    finally:
        db.close()
