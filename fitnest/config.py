import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./fitnest.db")

# Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")

# Shared with the API gateway, which issues user tokens with the same secret
JWT_SECRET = os.getenv("JWT_SECRET", "dev-only-change-me")
SERVICE_TOKEN_TTL_SECONDS = int(os.getenv("SERVICE_TOKEN_TTL_SECONDS", "300"))

# Service topology
TRAINER_SERVICE_URL = os.getenv("TRAINER_SERVICE_URL", "http://localhost:3005")
TRAINER_SERVICE_TIMEOUT = float(os.getenv("TRAINER_SERVICE_TIMEOUT", "10"))
DOMAIN = os.getenv("DOMAIN", "http://localhost:3000")
PAYMENT_SERVICE_BASE_URL = os.getenv("PAYMENT_SERVICE_BASE_URL", "http://localhost:3003")

# Stripe requires at least 30 minutes for Checkout expiry; holds live exactly as long
CHECKOUT_EXPIRY_SECONDS = int(os.getenv("CHECKOUT_EXPIRY_SECONDS", str(31 * 60)))
HOLD_TTL_SECONDS = int(os.getenv("HOLD_TTL_SECONDS", str(CHECKOUT_EXPIRY_SECONDS)))

APPLICATION_FEE_PERCENT = int(os.getenv("APPLICATION_FEE_PERCENT", "10"))
RELEASE_RETRY_ATTEMPTS = int(os.getenv("RELEASE_RETRY_ATTEMPTS", "3"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Reduce verbosity of third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
