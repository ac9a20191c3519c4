import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "face_attendance"),
    "connection_timeout": int(os.getenv("DB_TIMEOUT", "10")),
}

MATCH_THRESHOLD = float(os.getenv("MATCH_THRESHOLD", "0.6"))
EMBEDDING_DIMENSION = int(os.getenv("EMBEDDING_DIMENSION", "128"))

LOAD_EXTRACTOR = bool(int(os.getenv("LOAD_EXTRACTOR", "1")))

DEBUG = False

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
