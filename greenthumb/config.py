import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# ============================================================================#
# ENVIRONMENT / SERVICES
# ============================================================================#
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")  # Gemini via OpenRouter
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "google/gemini-2.5-flash")

# Attribution headers sent to OpenRouter
APP_REFERER = os.getenv("APP_REFERER", "https://github.com/greenthumb-ai/greenthumb")
APP_TITLE = os.getenv("APP_TITLE", "Greenthumb AI")

# Timeout configuration for API calls (seconds)
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "60"))
API_CONNECT_TIMEOUT = float(os.getenv("API_CONNECT_TIMEOUT", "15"))

# Local garden database
GARDEN_DB_PATH = os.getenv("GARDEN_DB_PATH", "data/greenthumb.sqlite")
GARDEN_SCHEMA_VERSION = 1

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ============================================================================#
# USER-FACING MESSAGES
# ============================================================================#
IDENTIFY_ERROR_MESSAGE = "Could not identify the plant. Please try a clearer image."
DIAGNOSE_ERROR_MESSAGE = "Could not diagnose the plant. Please try a clearer image."
LOCATION_CODE_ERROR_MESSAGE = "Please enter a valid 5-digit Zip Code (e.g. 94043)"
SAVE_ERROR_MESSAGE = "Failed to save plant. Please try again."
REMOVE_ERROR_MESSAGE = "Failed to remove plant. Please try again."
GARDEN_LOAD_ERROR_MESSAGE = "Could not load your garden. Saved plants are unavailable right now."
CHAT_ERROR_MESSAGE = "I'm having trouble connecting to my botanical database right now. Try again later."
CHAT_GREETING = "Hello! I am Greenthumb, your AI gardening assistant. Ask me anything about your plants!"

# Shown instead of an empty or placeholder product price
PRICE_FALLBACK_TEXT = "Visit the Site below"

# Number of citations surfaced next to a chat reply or product list
MAX_SOURCES_SHOWN = 3
