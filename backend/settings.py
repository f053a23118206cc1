"""
Environment configuration for the dashboard.
Values come from .env (via python-dotenv) or the process environment.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# ──────────────────────── Device Server ────────────────────────
DEVICE_BASE_URL = os.getenv("DEVICE_BASE_URL", "http://127.0.0.1:8000")
DEVICE_TIMEOUT = float(os.getenv("DEVICE_TIMEOUT", "4"))

# ──────────────────────── Polling & Notices ────────────────────────
POLL_INTERVAL = float(os.getenv("POLL_INTERVAL", "1"))  # seconds
NOTICE_SECONDS = float(os.getenv("NOTICE_SECONDS", "2"))
ERROR_NOTICE_SECONDS = float(os.getenv("ERROR_NOTICE_SECONDS", "3"))

# ──────────────────────── Dashboard Server ────────────────────────
DASHBOARD_HOST = os.getenv("DASHBOARD_HOST", "0.0.0.0")
DASHBOARD_PORT = int(os.getenv("DASHBOARD_PORT", "8080"))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    if o.strip()
]
