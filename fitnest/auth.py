import time

from fastapi import Header, HTTPException
from jose import JWTError, jwt

from fitnest import config

ALGORITHM = "HS256"
SERVICE_NAME = "payment-service"


def verify_token(authorization: str = Header(None)):
    if not authorization:
        raise HTTPException(status_code=401, detail="Invalid or missing token")
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("unsupported scheme")
        return jwt.decode(token, config.JWT_SECRET, algorithms=[ALGORITHM])
    except (ValueError, JWTError):
        raise HTTPException(status_code=401, detail="Invalid or missing token")


def create_service_token(subject: str = SERVICE_NAME):
    """Short-lived token the payment service presents to the trainer service."""
    now = int(time.time())
    claims = {"sub": subject, "iat": now, "exp": now + config.SERVICE_TOKEN_TTL_SECONDS}
    return jwt.encode(claims, config.JWT_SECRET, algorithm=ALGORITHM)
