import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "face_attendance"),
}

# Face matching
MATCH_THRESHOLD = float(os.getenv("MATCH_THRESHOLD", "0.6"))
EMBEDDING_DIMENSION = int(os.getenv("EMBEDDING_DIMENSION", "128"))

# Load the face_recognition backend at startup (needs the 'vision' extra)
LOAD_EXTRACTOR = bool(int(os.getenv("LOAD_EXTRACTOR", "0")))

DEBUG = True

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_DIR = os.getenv("LOG_DIR", "logs")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
