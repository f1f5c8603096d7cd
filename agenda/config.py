import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./agenda.db")

# Single civil timezone for the whole engine (no multi-timezone support)
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "America/Sao_Paulo")

# Frontend base URL used to build reschedule links in reminders.
# Leave empty to send reminders without a link.
APP_PUBLIC_URL = os.getenv("APP_PUBLIC_URL", "")

# Template defaults applied to weekdays that were never configured
DEFAULT_SESSION_MINUTES = int(os.getenv("DEFAULT_SESSION_MINUTES", "50"))
DEFAULT_BUFFER_MINUTES = int(os.getenv("DEFAULT_BUFFER_MINUTES", "10"))

# Slot listing is bounded to keep a single availability query cheap (12 weeks)
MAX_SLOT_RANGE_DAYS = int(os.getenv("MAX_SLOT_RANGE_DAYS", "84"))

# Recurrence expansion horizon when a contract has neither end date nor count
RECURRENCE_HORIZON_DAYS = int(os.getenv("RECURRENCE_HORIZON_DAYS", "365"))

# Reschedule tokens: lifetime after issuance, and how far ahead a move may land
RESCHEDULE_TOKEN_TTL_DAYS = int(os.getenv("RESCHEDULE_TOKEN_TTL_DAYS", "14"))
RESCHEDULE_WINDOW_DAYS = int(os.getenv("RESCHEDULE_WINDOW_DAYS", "14"))

# Twilio WhatsApp Configuration (reminder delivery)
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_WHATSAPP_FROM = os.getenv("TWILIO_WHATSAPP_FROM")  # e.g. whatsapp:+14155238886

# Reminder trigger: API key for POST /reminders/dispatch (empty = open, dev only)
REMINDER_API_KEY = os.getenv("REMINDER_API_KEY", "")
REMINDER_CRON_HOUR = int(os.getenv("REMINDER_CRON_HOUR", "11"))  # UTC
REMINDER_CRON_MINUTE = int(os.getenv("REMINDER_CRON_MINUTE", "0"))
# Skip appointments already reminded for the same day (opt-in dedup)
REMINDER_SKIP_ALREADY_SENT = os.getenv("REMINDER_SKIP_ALREADY_SENT", "false").lower() == "true"

# CORS: comma-separated frontend origins allowed to call the API
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
