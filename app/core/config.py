"""Configuration and environment variables."""
from dotenv import load_dotenv
import os

load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite+aiosqlite:///./growflow.db"
DATABASE_URL = DATABASE_URL.replace("mariadb+mariadbconnector", "mariadb+aiomysql")
print("[CONFIG] Using DATABASE_URL:", DATABASE_URL.split("@")[-1])

SERVER_URL = os.getenv("SERVER_URL")

# CORS Origins
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8080",
    SERVER_URL
] if SERVER_URL else ["http://localhost:3000", "http://localhost:8080"]

# Logging ('debug' enables request and notification traces)
LOG_LEVEL = (os.getenv("LOG_LEVEL") or "info").lower()
DEBUG = LOG_LEVEL == "debug"

# Home Assistant notification sink (disabled unless URL and token are set)
HOME_ASSISTANT_URL = (os.getenv("HOME_ASSISTANT_URL") or "").rstrip("/")
HOME_ASSISTANT_TOKEN = os.getenv("HOME_ASSISTANT_TOKEN")
HOME_ASSISTANT_TIMEOUT = float(os.getenv("HOME_ASSISTANT_TIMEOUT") or 10)
HA_ENTITY_PREFIX = os.getenv("HA_ENTITY_PREFIX") or "growflow"
HOME_ASSISTANT_ENABLED = bool(HOME_ASSISTANT_URL and HOME_ASSISTANT_TOKEN)
