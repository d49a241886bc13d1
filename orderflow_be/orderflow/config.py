import os
from functools import lru_cache

from dotenv import load_dotenv, find_dotenv

# Values already present in the environment win over the .env file
_env_path = find_dotenv(usecwd=True)
if _env_path:
    load_dotenv(_env_path, override=False)


class Settings:
    def __init__(self):
        self.DATABASE_URL: str = os.getenv("DATABASE_URL")
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "change_me_secret")
        self.ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
        # Default to 7 days so users stay logged in for a week
        self.ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(7 * 24 * 60)))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Order lifecycle
        self.EXPECTED_DELIVERY_DAYS: int = int(os.getenv("EXPECTED_DELIVERY_DAYS", "5"))
        self.VENDOR_ORDERS_PAGE_SIZE: int = int(os.getenv("VENDOR_ORDERS_PAGE_SIZE", "50"))
        # Refund backend; "manual" only records the refund marker on the order
        self.PAYMENT_GATEWAY: str = os.getenv("PAYMENT_GATEWAY", "manual").lower()

        # Customer notifications
        self.EMAIL_BACKEND: str = os.getenv("EMAIL_BACKEND", "console").lower()
        self.MAIL_SENDER: str = os.getenv("MAIL_SENDER")
        self.MAIL_PASSWORD: str = os.getenv("MAIL_PASSWORD")
        self.SMTP_SERVER: str = os.getenv("SMTP_SERVER", "smtp.gmail.com")
        self.SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
        self.ENABLE_EMAIL_NOTIFICATIONS: bool = bool(int(os.getenv("ENABLE_EMAIL_NOTIFICATIONS", "1")))


@lru_cache
def get_settings():
    return Settings()
