import os
import logging

class Settings:
    PROJECT_NAME: str = "Inventory Tracker"
    VERSION: str = "1.0.0"
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-only-secret-change-me")
    ALGO: str = "HS256"
    TOKEN_EXPIRE_MIN: int = 60
    DB_URL: str = os.getenv("DATABASE_URL", "sqlite:///./inventory_tracker.db")
    SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
    API_PREFIX: str = "/api"

    # session cookie
    COOKIE_NAME: str = "token"
    COOKIE_SECURE: bool = os.getenv("COOKIE_SECURE", "false").lower() == "true"
    COOKIE_SAMESITE: str = "lax"

    # stock rules
    LOW_STOCK_THRESHOLD: int = 10
    MAX_QUANTITY: int = 2**63 - 1
    EXPIRY_WINDOW_DAYS: int = 7
    RECENT_STOCK_OUT_LIMIT: int = 5

    # dashboard client
    CLIENT_TIMEOUT_SECONDS: float = 15.0
    DASHBOARD_MAX_ATTEMPTS: int = 3

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()

def configure_logging(level: str = None):
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
