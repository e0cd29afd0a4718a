"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Missing required fields raise a validation error at import time.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from crm_backend.database.config.config import settings

# Example
bucket = settings.BUCKET_NAME
ceiling = settings.MAX_NOTIFICATIONS_BEFORE_CLEANUP

Security
--------
- Never commit secrets or the `.env` file to source control.
- Prefer runtime environment variables in production (K8s/Secrets Manager/etc.).
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # HTTP
    FRONTEND_URL: str = Field("http://localhost:5173", description="Frontend origin allowed by CORS and used in reset links.")
    SHUTDOWN_GRACE_SECONDS: int = Field(10, description="Seconds to wait for in-flight requests on shutdown before forcing exit.")
    WORKERS: Optional[int] = Field(None, description="Worker processes for uvicorn (defaults to the CPU count).")

    # Database
    DB_DRIVER_NAME: str = Field(..., description="SQLAlchemy driver (e.g., `postgresql+psycopg2`, `sqlite`).")
    DB_USERNAME: Optional[str] = Field(None, description="Database username credential.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password credential.")
    DB_HOST: Optional[str] = Field(None, description="Hostname or IP address of the database server.")
    DB_PORT: Optional[int] = Field(None, description="Port of the database server.")
    DB_DATABASE_NAME: str = Field(..., description="Name of the database (file path for sqlite).")

    # Auth
    SECRET_KEY: str = Field(..., description="Secret key for signing tokens.")
    ALGORITHM: str = Field("HS256", description="JWT signing algorithm.")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(1440, description="Duration (in minutes) before access tokens expire.")
    OTP_EXPIRE_MINUTES: int = Field(10, description="Lifetime of an account activation code.")
    RESET_TOKEN_EXPIRE_MINUTES: int = Field(10, description="Lifetime of a password reset token.")

    # Object storage
    AWS_ACCESS_KEY: Optional[str] = Field(None, description="AWS access key ID.")
    AWS_SECRET_KEY: Optional[str] = Field(None, description="AWS secret access key.")
    REGION: str = Field("eu-central-1", description="AWS region name.")
    BUCKET_NAME: str = Field(..., description="Bucket holding every stored asset.")
    BUCKET_HOST: str = Field("s3.amazonaws.com", description="Host part of public asset URLs.")
    BUCKET_ENDPOINT_URL: Optional[str] = Field(None, description="Endpoint for S3-compatible stores (MinIO, GCS interop).")
    MAX_UPLOAD_SIZE_MB: int = Field(100, description="Largest accepted upload.")

    # Notifications
    MAX_NOTIFICATIONS_BEFORE_CLEANUP: int = Field(1000, description="Row count that triggers the retention sweep.")
    NOTIFICATION_RETENTION_DAYS: int = Field(30, description="Age after which notifications are swept.")

    # Email
    SENDER_EMAIL: str = Field("", description="Default email address used for sending application emails.")
    APP_PASSWORD: str = Field("", description="Application-specific password for the SMTP account.")
    SMTP_HOST: str = Field("smtp.gmail.com", description="SMTP server host.")
    SMTP_PORT: int = Field(587, description="SMTP server port (STARTTLS).")


# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
