"""Configuration for the clinic booking service.

Business defaults live here - modify as needed without touching code.
Deployment settings can be overridden through environment variables
(a local .env file is loaded automatically).
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Default weekly schedule applied when a doctor has none stored.
# Weekdays: 0=Sunday .. 6=Saturday
DEFAULT_SCHEDULE = {
    "working_days": [1, 2, 3, 4, 5],
    "start_time": "08:00",
    "end_time": "17:00",
    "slot_duration_minutes": 30,
}

APPOINTMENT_TYPES = ["consultation", "checkup", "follow-up"]
DEFAULT_APPOINTMENT_TYPE = "consultation"

DEFAULT_CANCEL_REASON = "Cancelled by user"

# Listing
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
UPCOMING_LIMIT = 10

# Deployment
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///clinic_booking.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
API_PORT = int(os.getenv("API_PORT", "8000"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Daily reminder pass (local server hour, 0-23)
REMINDER_HOUR = int(os.getenv("REMINDER_HOUR", "8"))
REMINDERS_ENABLED = os.getenv("REMINDERS_ENABLED", "true").lower() == "true"
