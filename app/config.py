import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL")

# Firebase Configuration (identity provider for both clients and therapists)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Colectiva Payments Configuration (escrow + wallets)
# Leave unset in development: the payments client then runs in mock mode
COLECTIVA_API_URL = os.getenv("COLECTIVA_API_URL")
COLECTIVA_API_KEY = os.getenv("COLECTIVA_API_KEY")
COLECTIVA_CURRENCY = os.getenv("COLECTIVA_CURRENCY", "MXN")
COLECTIVA_TIMEOUT_SECONDS = float(os.getenv("COLECTIVA_TIMEOUT_SECONDS", "15"))

# Frontend base URL for payment redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Rate limiting (Redis). Set RATE_LIMIT_ENABLED=false for local development and tests
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://plenura.com,https://www.plenura.com,http://localhost:5173",
).split(",")
