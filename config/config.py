import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Discord bot token
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")

# Firebase configuration - individual service account fields are read from .env
# by the Firebase service:
# FIREBASE_TYPE, FIREBASE_PROJECT_ID, FIREBASE_PRIVATE_KEY_ID,
# FIREBASE_PRIVATE_KEY, FIREBASE_CLIENT_EMAIL, FIREBASE_CLIENT_ID,
# FIREBASE_AUTH_URI, FIREBASE_TOKEN_URI, FIREBASE_AUTH_PROVIDER_X509_CERT_URL,
# FIREBASE_CLIENT_X509_CERT_URL, FIREBASE_UNIVERSE_DOMAIN
# Fallback when those are not set: a service account JSON file
FIREBASE_CREDENTIALS_FILE = os.getenv("FIREBASE_CREDENTIALS_FILE")

# Firestore collection holding one document per task
TASKS_COLLECTION = os.getenv("TODO_TASKS_COLLECTION", "tasks")

# Timezone used for deadlines entered without an offset
TODO_TIMEZONE = os.getenv("TODO_TIMEZONE", "UTC")

# Countdown recomputation and board re-render intervals (seconds)
COUNTDOWN_INTERVAL_SECONDS = float(os.getenv("TODO_COUNTDOWN_INTERVAL_SECONDS", "1"))
BOARD_REFRESH_SECONDS = float(os.getenv("TODO_BOARD_REFRESH_SECONDS", "5"))

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")

# Countdown markers
EXPIRED_MARKER = "Time's up!"
PENDING_MARKER = "Calculating..."
INVALID_DEADLINE_MARKER = "Invalid deadline"

# Deadline format shown in the modal (datetime-local style, no seconds)
DEADLINE_INPUT_FORMAT = "%Y-%m-%dT%H:%M"
DEADLINE_DISPLAY_FORMAT = "%B %d, %Y %I:%M %p %Z"
