import os

from config.config import *  # noqa: F401,F403
from config.config import _env_bool, db_config

SECRET_KEY = "test-secret"

DB_CONFIG = db_config()

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = _env_bool("AUTO_INIT_DB", "0")
AUTO_SEED_DB = _env_bool("AUTO_SEED_DB", "0")
