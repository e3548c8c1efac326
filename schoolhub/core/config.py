import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.jwt_secret = self._get("JWT_SECRET")
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.auth_token_exp_minutes = self._get_int("AUTH_TOKEN_EXP_MINUTES", default=60)
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/schoolhub.db")).resolve()
        self.token_daily_limit = self._get_int("TOKEN_DAILY_LIMIT", default=5)
        self.trial_token_max_days = self._get_int("TRIAL_TOKEN_MAX_DAYS", default=7)
        self.admin_default_email = os.getenv("ADMIN_EMAIL")
        self.admin_default_password = os.getenv("ADMIN_PASSWORD")
        self.admin_contact_email = os.getenv("ADMIN_CONTACT_EMAIL") or self.admin_default_email
        self.smtp_host = os.getenv("SMTP_HOST", "")
        self.smtp_port = self._get_int("SMTP_PORT", default=587)
        self.smtp_username = os.getenv("SMTP_USERNAME", "")
        self.smtp_password = os.getenv("SMTP_PASSWORD", "")
        self.smtp_from_email = os.getenv("SMTP_FROM_EMAIL", "")
        self.app_url = os.getenv("APP_URL", "http://localhost:5173")
        self.video_base_dir = Path(os.getenv("VIDEO_BASE_DIR", "data/videos")).resolve()
        self.firebase_credentials = os.getenv("FIREBASE_CREDENTIALS")
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = [self.app_url]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @staticmethod
    def _get(key: str) -> str:
        value = os.getenv(key)
        if not value:
            raise RuntimeError(f"Missing required environment variable: {key}")
        return value

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc
