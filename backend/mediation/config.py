"""Runtime configuration read from the environment."""

import os

DATABASE_PATH = os.getenv("DATABASE_PATH", "./data/mediation.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Client side
API_URL = os.getenv("MEDIATION_API_URL", "http://127.0.0.1:8000/api/")
MOCK_FALLBACK = os.getenv("MEDIATION_MOCK_FALLBACK", "false").lower() in ("1", "true", "yes")
EXPORT_DIR = os.getenv("MEDIATION_EXPORT_DIR", ".")
OPERATOR = os.getenv("MEDIATION_OPERATOR", "user")

# Allow any localhost port by default
CORS_ORIGIN_REGEX = os.getenv("CORS_ORIGIN_REGEX", r"^http://localhost(:\d+)?$")
