import logging
import os
import tomllib
from datetime import timedelta
from enum import StrEnum
from pathlib import Path

from pydantic import SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL

from gallery.core.constants import OperationClass, RateLimitPolicy

PROJECT_DIR = Path(__file__).parent.parent.parent
PROJECT_TOML_PATH = PROJECT_DIR / "pyproject.toml"

with open(PROJECT_TOML_PATH, "rb") as f:
    PYPROJECT_CONTENT = tomllib.load(f)["project"]


class Environment(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    STG = "stg"
    PRD = "prd"


class AuthMode(StrEnum):
    """Which credential flow protects privileged operations"""

    TOKEN = "token"
    LEGACY = "legacy"


class StorageBackend(StrEnum):
    MEMORY = "memory"
    GCS = "gcs"


def convert_app_name(s: str) -> str:
    return " ".join(word.capitalize() for word in s.split("-"))


class Settings(BaseSettings):
    """
    Application settings.

    These parameters can be configured
    with environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=False,
        extra="ignore",
    )

    # App variables
    app_name: str = PYPROJECT_CONTENT["name"]
    app_title: str = os.getenv("APP_TITLE", convert_app_name(app_name))
    app_version: str = PYPROJECT_CONTENT["version"]
    app_description: str = PYPROJECT_CONTENT["description"]

    backend_host: str = "0.0.0.0"
    backend_port: int = 8000

    cors_origins: str = "*"

    # Number of workers for uvicorn
    workers_count: int = 1

    # Enable uvicorn reloading
    reload_uvicorn: bool = False

    # Current working environment
    current_environment: Environment = Environment.LOCAL
    log_level: int = logging.INFO
    debug: bool = False

    # Gallery owner credentials
    gallery_username: str
    gallery_password: SecretStr
    gallery_password_hash: str | None = None  # pwdlib hash, takes precedence over the plain value
    auth_mode: AuthMode = AuthMode.TOKEN
    guest_mode: bool = True  # Unauthenticated read-only access to list and fetch

    # Token security settings
    secret_key: SecretStr
    access_token_expire_seconds: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_SECONDS", timedelta(days=1).total_seconds())
    )

    # Variables for Redis (unset host means no shared rate limit store)
    redis_host: str | None = None
    redis_port: int = 6379
    redis_user: str | None = None
    redis_pass: str | None = None
    redis_base: int | None = None
    redis_max_pool_connections: int = 10  # Maximum number of connections in the Redis pool
    redis_socket_connect_timeout: int = 2  # Socket connect timeout in seconds
    redis_socket_timeout: int = 2  # Socket timeout in seconds

    # Rate limiting settings (requests per window, window in milliseconds)
    rate_limit_enabled: bool = True
    rate_limit_store_timeout: float = 1.0  # Seconds before the shared store counts as down
    rate_limit_list_requests: int = 20
    rate_limit_list_window_ms: int = 60_000
    rate_limit_login_requests: int = 5
    rate_limit_login_window_ms: int = 60_000
    rate_limit_upload_requests: int = 10
    rate_limit_upload_window_ms: int = 60_000
    rate_limit_delete_requests: int = 10
    rate_limit_delete_window_ms: int = 60_000
    rate_limit_object_requests: int = 300
    rate_limit_object_window_ms: int = 60_000
    login_failure_ttl_seconds: int = 3600

    # Upload constraints
    allowed_file_types: str = (
        "image/jpeg,image/png,image/gif,image/webp,video/mp4,video/webm,video/ogg"
    )
    max_file_size_bytes: int = 50 * 1024 * 1024
    max_storage_bytes: int = 6 * 1024 * 1024 * 1024
    upload_prefix: str = ""

    # Object storage
    storage_backend: StorageBackend = StorageBackend.MEMORY
    gcs_bucket_name: str | None = None
    gcs_service_account_path: Path | None = None

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS origins from a comma-separated string.
        """
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @computed_field
    @property
    def redis_url(self) -> URL | None:
        """
        Assemble REDIS URL from settings, None when no Redis host is configured.
        """
        if not self.redis_host:
            return None

        path = ""

        if self.redis_base is not None:
            path = f"/{self.redis_base}"

        return URL.build(
            scheme="redis",
            host=self.redis_host,
            port=self.redis_port,
            user=self.redis_user,
            password=self.redis_pass,
            path=path,
        )

    @computed_field
    @property
    def rate_limit_policies(self) -> dict[OperationClass, RateLimitPolicy]:
        """
        Per operation class (max_requests, window_ms) pairs.
        """
        return {
            OperationClass.LIST: RateLimitPolicy(
                self.rate_limit_list_requests, self.rate_limit_list_window_ms
            ),
            OperationClass.LOGIN: RateLimitPolicy(
                self.rate_limit_login_requests, self.rate_limit_login_window_ms
            ),
            OperationClass.UPLOAD: RateLimitPolicy(
                self.rate_limit_upload_requests, self.rate_limit_upload_window_ms
            ),
            OperationClass.DELETE: RateLimitPolicy(
                self.rate_limit_delete_requests, self.rate_limit_delete_window_ms
            ),
            OperationClass.OBJECT: RateLimitPolicy(
                self.rate_limit_object_requests, self.rate_limit_object_window_ms
            ),
        }


settings = Settings()  # type: ignore
