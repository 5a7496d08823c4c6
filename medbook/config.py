import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./medbook.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Security - bearer tokens are issued by the identity service and signed with this key
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Stripe-compatible payment provider
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_API_URL = os.getenv("STRIPE_API_URL", "https://api.stripe.com/v1")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "inr")
# Upper bound for a single confirmation call; expiry fails the booking
PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "10"))

# Provider categories that must prepay before a booking is confirmed
PRIVATE_CATEGORIES = frozenset(
    c.strip().lower() for c in os.getenv("PRIVATE_CATEGORIES", "private").split(",") if c.strip()
)

# Unfiltered availability listing looks this many days ahead
AVAILABILITY_LOOKAHEAD_DAYS = int(os.getenv("AVAILABILITY_LOOKAHEAD_DAYS", "30"))
