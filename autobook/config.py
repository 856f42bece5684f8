"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# ── Environment ───────────────────────────────────────────────────────────

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
APP_VERSION: str = "0.1.0"

# ── Venue opening hours (venue-local, 30-minute grid) ─────────────────────

OPENING_HOUR: int = int(os.getenv("OPENING_HOUR", "8"))
CLOSING_HOUR: int = int(os.getenv("CLOSING_HOUR", "20"))
SLOT_MINUTES: int = 30

# ── Booking window ────────────────────────────────────────────────────────

# The window for a slot opens this many days before the slot's date ...
BOOKING_WINDOW_DAYS: int = int(os.getenv("BOOKING_WINDOW_DAYS", "7"))
# ... at this local hour.
BOOKING_WINDOW_HOUR: int = int(os.getenv("BOOKING_WINDOW_HOUR", "20"))

# ── Pricing (minor currency units per 30-minute slot) ─────────────────────

CURRENCY: str = os.getenv("CURRENCY", "GBP")
PEAK_START_HOUR: int = int(os.getenv("PEAK_START_HOUR", "16"))
PEAK_END_HOUR: int = int(os.getenv("PEAK_END_HOUR", "20"))
PEAK_PRICE: int = int(os.getenv("PEAK_PRICE", "1500"))
OFF_PEAK_PRICE: int = int(os.getenv("OFF_PEAK_PRICE", "1000"))

# ── Monitoring ────────────────────────────────────────────────────────────

# How often the monitoring engine ticks (seconds).
MONITOR_INTERVAL: float = float(os.getenv("MONITOR_INTERVAL", "2"))

# Warn operators when a scheduled booking's window has been open this long
# without the booking being confirmed.
SCHEDULED_GRACE_HOURS: float = float(os.getenv("SCHEDULED_GRACE_HOURS", "1"))

# How many transition notices the in-memory inbox keeps.
NOTIFICATION_INBOX_SIZE: int = int(os.getenv("NOTIFICATION_INBOX_SIZE", "200"))

# ── SMTP ──────────────────────────────────────────────────────────────────

SMTP_HOST: str = os.getenv("SMTP_HOST", "")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
SMTP_FROM_EMAIL: str = os.getenv("SMTP_FROM_EMAIL", "noreply@autobook.local")
SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

# Where booking notices are mailed. Empty disables the email sink.
NOTIFY_EMAIL: str = os.getenv("NOTIFY_EMAIL", "")

# Set to "false" to force console-only mode even when SMTP credentials are present.
_SMTP_ENABLED_OVERRIDE: str = os.getenv("SMTP_ENABLED", "auto")


def smtp_enabled() -> bool:
    """True when SMTP should actually send emails.

    Controlled by SMTP_ENABLED env var:
      • "auto" (default) — send if credentials are configured
      • "true"  — always send (will fail if credentials are missing)
      • "false" — never send, log to console instead
    """
    if _SMTP_ENABLED_OVERRIDE.lower() == "false":
        return False
    if _SMTP_ENABLED_OVERRIDE.lower() == "true":
        return True
    return bool(SMTP_HOST and SMTP_USERNAME and SMTP_PASSWORD)


# ── Connected accounts ────────────────────────────────────────────────────

# Comma-separated account ids seeded into the account pool at startup.
SEED_ACCOUNTS: list[str] = [
    a.strip() for a in os.getenv("SEED_ACCOUNTS", "").split(",") if a.strip()
]
