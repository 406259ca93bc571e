import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# ----------------------------
# Config & Constants
# ----------------------------
@dataclass
class Settings:
    database_url: str = "sqlite:///./brandmock.db"
    uploads_dir: str = "public/uploads"
    templates_dir: str = "public/templates"
    payment_backend: str = "mock"  # 'mock' | 'stripe'
    stripe_secret_key: Optional[str] = None
    currency: str = "usd"
    payment_timeout: float = 10.0
    public_base_url: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        stripe_key = os.getenv("STRIPE_SECRET_KEY") or None
        backend = os.getenv(
            "PAYMENT_BACKEND", "stripe" if stripe_key else "mock"
        ).lower()
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            uploads_dir=os.getenv("UPLOADS_DIR", cls.uploads_dir),
            templates_dir=os.getenv(
                "MOCKUP_TEMPLATES_DIR", cls.templates_dir
            ),
            payment_backend=backend,
            stripe_secret_key=stripe_key,
            currency=os.getenv("PAYMENT_CURRENCY", cls.currency).lower(),
            payment_timeout=float(
                os.getenv("PAYMENT_TIMEOUT_SECONDS", str(cls.payment_timeout))
            ),
            public_base_url=os.getenv("PUBLIC_BASE_URL") or None,
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
