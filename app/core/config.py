from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"  # local|test|staging|production
    APP_NAME: str = "Studio API"
    # Comma-separated origins for CORS (e.g. https://studio.example,https://admin.studio.example). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Bootstrap admin created by app.seed when missing
    SEED_ADMIN_EMAIL: str = "admin@studio.local"
    SEED_ADMIN_PASSWORD: str = "admin12345"

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_TASK_ALWAYS_EAGER: bool = False

    # Email transport: smtp | resend | sendgrid | mailgun (anything else falls back to plain SMTP)
    EMAIL_PROVIDER: str = "smtp"
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False
    SMTP_USER: str = ""
    SMTP_PASS: str = ""

    SENDGRID_API_KEY: str = ""
    MAILGUN_SMTP_LOGIN: str = ""
    MAILGUN_SMTP_PASSWORD: str = ""
    RESEND_API_KEY: str = ""

    EMAIL_FROM_NAME: str = "Studio"
    EMAIL_FROM_ADDRESS: str = "onboarding@resend.dev"
    EMAIL_REPLY_TO: str = ""
    EMAIL_PREVIEW_MODE: bool = False  # skip real delivery, report success
    EMAIL_TEST_RECIPIENT: str = ""  # redirects every email outside production
    EMAIL_RATE_LIMIT: int = 100  # sends per trailing hour

    EMAIL_SEND_MAX_RETRIES: int = 3
    EMAIL_RETRY_BASE_SECONDS: int = 60

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


settings = Settings()
