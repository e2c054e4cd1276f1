import os
from pathlib import Path
from dotenv import load_dotenv
import logging
import sys
from typing import List

# Load environment variables
load_dotenv()

# Environment check
ENV = os.getenv("ENV", "development")
IS_PRODUCTION = ENV == "production"

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if IS_PRODUCTION else "DEBUG").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = os.getenv("LOG_FILE")

_handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
if LOG_FILE:
    if IS_PRODUCTION:
        from logging.handlers import RotatingFileHandler
        _handlers.append(RotatingFileHandler(LOG_FILE, maxBytes=10485760, backupCount=5, encoding="utf-8"))
    else:
        _handlers.append(logging.FileHandler(LOG_FILE, encoding="utf-8"))

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format=LOG_FORMAT,
    handlers=_handlers,
)

# Reduce noise from HTTP, multipart and AI client libraries
for _noisy in ("httpx", "httpcore", "urllib3", "multipart", "multipart.multipart",
               "google", "openai", "langchain", "sqlalchemy.engine"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logging.getLogger("uvicorn").setLevel(logging.INFO)

logger = logging.getLogger(__name__)

# Base directory (repository root)
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent

# Security Settings
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY and IS_PRODUCTION:
    raise ValueError("JWT_SECRET_KEY must be set in production environment")
elif not JWT_SECRET_KEY:
    logger.warning("JWT_SECRET_KEY not found in environment variables. Using a default key for development only.")
    JWT_SECRET_KEY = "noteshare-secret-key"  # Only for development

JWT_ALGORITHM = "HS256"

# 0 or unset: tokens carry no expiry claim
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "0") or 0)

# bcrypt cost factor for password hashes
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'noteshare.db'}")

# Uploaded note files
UPLOAD_DIR = os.path.abspath(os.getenv("UPLOAD_DIR", str(BASE_DIR / "uploads")))

if not IS_PRODUCTION:
    try:
        os.makedirs(UPLOAD_DIR, exist_ok=True)
    except OSError as e:
        logger.warning(f"Could not create directory {UPLOAD_DIR}: {e}")

# AI Provider Configuration
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")

AI_PROVIDER = os.getenv("AI_PROVIDER", "google").lower()  # "openai" or "google"
if AI_PROVIDER not in ["openai", "google"]:
    logger.warning(f"Invalid AI_PROVIDER: {AI_PROVIDER}. Defaulting to 'google'")
    AI_PROVIDER = "google"

if not OPENAI_API_KEY and not GOOGLE_API_KEY:
    logger.warning("Neither OPENAI_API_KEY nor GOOGLE_API_KEY found in environment variables. Quiz generation will not work.")

CHAT_MODEL = os.getenv(
    "CHAT_MODEL",
    "gemini-2.5-flash" if AI_PROVIDER == "google" else "gpt-4o-mini"
)
AI_REQUEST_TIMEOUT = int(os.getenv("AI_REQUEST_TIMEOUT", "60"))
AI_MAX_RETRIES = int(os.getenv("AI_MAX_RETRIES", "2"))

# Quiz and leaderboard
QUIZ_QUESTION_COUNT = int(os.getenv("QUIZ_QUESTION_COUNT", "10"))
LEADERBOARD_LIMIT = 50

# API Settings
API_TITLE = "NoteShare API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "College note sharing: upload, search, rate and discuss course notes, with AI quizzes and a leaderboard"

# CORS Configuration
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]


def clean_cors_origins(origins):
    """Strip separators and drop entries that are not http(s) origins"""
    cleaned_origins = []
    for origin in origins:
        cleaned = origin.replace(';', '').replace(',', '').strip()
        if cleaned.startswith('http://') or cleaned.startswith('https://'):
            if cleaned not in cleaned_origins:
                cleaned_origins.append(cleaned)
        elif cleaned:
            logger.warning(f"Invalid CORS origin format: '{origin}'")
    return cleaned_origins


CORS_ORIGINS = clean_cors_origins(DEFAULT_CORS_ORIGINS)

ENV_CORS_ORIGINS = os.getenv("CORS_ORIGINS")
if ENV_CORS_ORIGINS:
    env_origins = clean_cors_origins(ENV_CORS_ORIGINS.replace(';', ',').split(','))
    if env_origins:
        CORS_ORIGINS = env_origins
        logger.info(f"CORS origins overridden from environment: {CORS_ORIGINS}")
    else:
        logger.warning("Environment CORS_ORIGINS parsed but no valid origins found, using defaults")

CORS_ALLOW_ALL = os.getenv("CORS_ALLOW_ALL", "false").lower() == "true"
if CORS_ALLOW_ALL:
    logger.warning("CORS_ALLOW_ALL is enabled - allowing all origins (NOT RECOMMENDED FOR PRODUCTION)")
    CORS_ORIGINS = ["*"]

logger.info(f"Starting application in {ENV} mode")
logger.info(f"Database: {DATABASE_URL.split('@')[-1]}")
logger.info(f"Upload Directory: {UPLOAD_DIR}")
logger.info(f"AI provider: {AI_PROVIDER} ({CHAT_MODEL})")
