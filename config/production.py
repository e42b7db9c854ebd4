import os

from config.config import *  # noqa: F401,F403
from config.config import _env_bool, db_config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config()

DEBUG = False
LOG_JSON = _env_bool("LOG_JSON", "1")

AUTO_INIT_DB = _env_bool("AUTO_INIT_DB", "0")
AUTO_SEED_DB = _env_bool("AUTO_SEED_DB", "0")
