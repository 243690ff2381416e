# shades_api/config.py

import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

# Load environment variables (optional for local dev)
load_dotenv(BASE_DIR / ".env")

DATABASE_URL = os.getenv("DATABASE_URL")

# Render/Heroku hand out postgres://, SQLAlchemy expects postgresql://
if DATABASE_URL and DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

SQL_ECHO = os.getenv("SQL_ECHO", "0") == "1"

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 10000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "info").lower()

UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "uploads"))

# Uploads
MAX_UPLOAD_FILES = 10
MIN_PRODUCT_IMAGES = 2
MAX_FILE_SIZE = 20 * 1024 * 1024

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "https://mihlievs.uz",
]
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", ",".join(DEFAULT_CORS_ORIGINS)).split(",") if o.strip()
]

API_TITLE = "Sunglasses API"
API_VERSION = "1.0.0"
