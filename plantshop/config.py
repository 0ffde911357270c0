import os
from datetime import timedelta
from pathlib import Path
from typing import Type

from dotenv import load_dotenv
from flask import Flask

BASE_DIR = Path(__file__).resolve().parent.parent
INSTANCE_DIR = Path(os.getenv("PLANTSHOP_INSTANCE", Path.cwd() / "instance"))
load_dotenv(dotenv_path=BASE_DIR / ".env")

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s | %(name)-28s | %(levelname)-7s | %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

MIN_SECRET_LENGTH = 32


def _sqlite_uri(name: str) -> str:
    return f"sqlite:///{INSTANCE_DIR / name}"


class Config:
    """Shared settings; pick a subclass through ``config_by_name``."""
    SECRET_KEY = os.getenv("APP_SECRET", "")

    # Session cookie carries the flask-login identity and the guest cart
    SESSION_COOKIE_NAME = "plantshop_session"
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=1)
    REMEMBER_COOKIE_DURATION = timedelta(days=30)

    LOG_LEVEL = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    LOG_FORMAT = os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT)
    LOG_DATEFMT = os.getenv("LOG_DATEFMT", DEFAULT_LOG_DATEFMT)
    LOG_FILE = os.getenv("LOG_FILE") or None

    DATABASE_URI = os.getenv("DATABASE_URI", _sqlite_uri("plantshop.db"))
    REDIS_URL = os.getenv("REDIS_URL", "")  # empty: settings are read straight from the database

    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", str(INSTANCE_DIR / "uploads"))
    RECEIPT_FOLDER = os.getenv("RECEIPT_FOLDER", str(INSTANCE_DIR / "receipts"))
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024
    MAX_UPLOAD_FILES = 10
    IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}
    IMAGE_MAX_SIZE = 1000

    ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY", "")
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@jungleplants.ru")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin12345")
    STORE_NAME = os.getenv("STORE_NAME", "Jungle Plants")
    RECEIPT_FONT = os.getenv("RECEIPT_FONT", "")

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", 5000))

    @staticmethod
    def init_app(app: Flask) -> None:
        pass


class DevelopmentConfig(Config):
    DEBUG = True

    @staticmethod
    def init_app(app: Flask) -> None:
        if len(app.config.get("SECRET_KEY") or "") < MIN_SECRET_LENGTH:
            app.logger.warning(
                "APP_SECRET is shorter than %d characters; set a random value in .env", MIN_SECRET_LENGTH
            )
        if not app.config.get("SECRET_KEY"):
            app.config["SECRET_KEY"] = "plantshop-development-only"


class ProductionConfig(Config):
    SESSION_COOKIE_SECURE = True

    @staticmethod
    def init_app(app: Flask) -> None:
        if len(app.config.get("SECRET_KEY") or "") < MIN_SECRET_LENGTH:
            raise ValueError(f"APP_SECRET must be at least {MIN_SECRET_LENGTH} characters in production")
        if app.config.get("ADMIN_PASSWORD") == Config.ADMIN_PASSWORD:
            app.logger.warning("ADMIN_PASSWORD is still the shipped default")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing-secret"
    WTF_CSRF_ENABLED = False
    BCRYPT_ROUNDS = 4
    REDIS_URL = ""
    ENCRYPTION_KEY = ""
    DATABASE_URI = _sqlite_uri("test.db")
    HOST = "127.0.0.1"


config_by_name: dict[str, Type[Config]] = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
