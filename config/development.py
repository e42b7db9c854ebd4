import os

from config.config import *  # noqa: F401,F403
from config.config import _env_bool, db_config

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config()

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = _env_bool("AUTO_INIT_DB", "1")
# Optional: also seed default pay/duty types on startup
AUTO_SEED_DB = _env_bool("AUTO_SEED_DB", "0")
