"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"
    TESTING: bool = False

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # Admin bearer tokens
    JWT_SECRET: str = "change-this-in-production"
    JWT_EXPIRES_HOURS: int = 8
    # Tokens handed to submitters after OTP verification
    SUBMITTER_TOKEN_EXPIRES_HOURS: int = 1

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_API: int = 120
    RATE_LIMIT_OTP: int = 5
    RATE_LIMIT_PAYMENT: int = 30

    # Razorpay
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    PAYMENT_CURRENCY: str = "INR"

    # Asset storage
    STORAGE_BACKEND: str = "local"  # local | s3
    LOCAL_STORAGE_PATH: str = "public/uploads"
    PUBLIC_UPLOADS_PREFIX: str = "/uploads"
    S3_BUCKET: str = "formbuilder-uploads"
    S3_REGION: str = "ap-south-1"
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None
    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024

    # PDF uploads on file columns must fall within this page range
    PDF_MIN_PAGES: int = 2
    PDF_MAX_PAGES: int = 3

    # One-time passcodes
    OTP_TTL_SECONDS: int = 600
    OTP_LENGTH: int = 6
    REDIS_URL: str = ""

    # Messaging (WhatsApp gateway + Resend for email)
    WHATSAPP_API_URL: str = ""
    WHATSAPP_INSTANCE_ID: str = ""
    WHATSAPP_ACCESS_TOKEN: str = ""
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "forms@example.com"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_testing(self) -> bool:
        return self.TESTING or self.ENV == "test"


settings = Settings()
