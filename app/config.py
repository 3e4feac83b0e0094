# file: app/config.py

import os
from dotenv import load_dotenv

load_dotenv()

# --- Backend REST API ---
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000")
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "30"))

# --- History reconciliation ---
HISTORY_MAX_RETRIES = int(os.getenv("HISTORY_MAX_RETRIES", "2"))
HISTORY_RETRY_DELAY_SECONDS = float(os.getenv("HISTORY_RETRY_DELAY_SECONDS", "1.0"))
PRESENTATION_SPACING_SECONDS = float(os.getenv("PRESENTATION_SPACING_SECONDS", "0.5"))

# --- Host provenance (read by the capability prober) ---
# "expo" means the sandboxed dev client; "standalone" is an installed build.
APP_OWNERSHIP = os.getenv("APP_OWNERSHIP", "standalone")
DEVICE_IS_PHYSICAL = os.getenv("DEVICE_IS_PHYSICAL", "true").lower() == "true"
DEVICE_PLATFORM = os.getenv("DEVICE_PLATFORM", "android")
DEVICE_PUSH_TOKEN = os.getenv("DEVICE_PUSH_TOKEN")

# --- Push delivery ---
PUSH_PROVIDER = os.getenv("PUSH_PROVIDER", "expo")
EXPO_PUSH_URL = os.getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS", "serviceAccountKey.json")

# --- Local persistence (pending invitation slot) ---
LOCAL_DATABASE_URL = os.getenv("LOCAL_DATABASE_URL", "sqlite+aiosqlite:///./carecompanion_local.db")

# --- Auth provider session tokens ---
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET")
AUTH_JWT_ALGORITHM = "HS256"
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")

PENDING_INVITATION_KEY = "pendingInvitation"
