import os

from dotenv import load_dotenv

load_dotenv()


def _normalize_database_url(url: str) -> str:
    # Render/Heroku hand out postgres:// which SQLAlchemy expects as postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


class Settings:
    DATABASE_URL = _normalize_database_url(os.getenv("DATABASE_URL", "sqlite:///./ewaste.db"))

    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_MINUTES = int(os.getenv("ACCESS_TOKEN_MINUTES", "43200"))

    OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "600"))
    OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))
    NOTIFY_TIMEOUT_SECONDS = float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "10"))

    AT_USERNAME = os.getenv("AT_USERNAME") or os.getenv("AFRICASTALKING_USERNAME")
    AT_API_KEY = os.getenv("AT_API_KEY") or os.getenv("AFRICASTALKING_APIKEY")
    AT_FROM = os.getenv("AT_FROM") or os.getenv("AFRICASTALKING_FROM")

    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    MAIL_FROM = os.getenv("MAIL_FROM", "noreply@ewaste-smart.com")

    PORT = int(os.getenv("PORT", "8000"))

    ALLOWED_ORIGINS = [
        o.strip()
        for o in os.getenv(
            "ALLOWED_ORIGINS",
            "http://localhost:3000,http://localhost:5173,http://localhost:8080",
        ).split(",")
        if o.strip()
    ]


settings = Settings()
