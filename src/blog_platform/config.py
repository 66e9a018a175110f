"""
# Configuration Management Module

This module provides the configuration system for the Blog Platform API.
Built on **Pydantic Settings**, it loads values from the environment, an optional
configuration file and in-code defaults, validating everything once at import time.

## Configuration Loading Hierarchy

```
┌─────────────────────────────────────────────────────────────┐
│  1. Environment Variables (HIGHEST PRIORITY)                │
├─────────────────────────────────────────────────────────────┤
│  2. BLOG_PLATFORM_CONFIG_PATH (custom config file path)     │
├─────────────────────────────────────────────────────────────┤
│  3. .blog File (Project Root)                               │
├─────────────────────────────────────────────────────────────┤
│  4. .env File (Project Root)                                │
├─────────────────────────────────────────────────────────────┤
│  5. Default Values (LOWEST PRIORITY)                        │
└─────────────────────────────────────────────────────────────┘
```

If no configuration file is found, the application runs in **environment-only mode**.

## Configuration Groups

| Group | Purpose |
|-------|---------|
| **Server** | Host, port, debug mode, CORS origins |
| **JWT** | Signing secret, algorithm, access token lifetime |
| **Passwords** | bcrypt cost factor |
| **MongoDB** | Connection URL, database name, credentials, timeouts |
| **Pagination** | Default and maximum page sizes |
| **Logging** | Root log level |

## Secret Management

`SECRET_KEY` and `MONGODB_PASSWORD` are `SecretStr` values so they never show up in
logs or reprs. `SECRET_KEY` has no usable default: the `no_hardcoded_secrets` validator
rejects empty values and obvious placeholders (anything containing `"change"` or `"0000"`).

## Usage

```python
from blog_platform.config import settings

lifetime = settings.ACCESS_TOKEN_EXPIRE_MINUTES
secret = settings.SECRET_KEY.get_secret_value()
```

Managers never read `settings` directly; the wiring code passes the relevant values
into their constructors.

## Module-Level Constants & Attributes

Attributes:
    BLOG_FILENAME (str): Primary configuration filename (`.blog`).
    DEFAULT_ENV_FILENAME (str): Fallback configuration filename (`.env`).
    CONFIG_ENV_VAR (str): Environment variable naming a custom config file.
    PROJECT_ROOT (Path): Project root used to locate config files.
    CONFIG_PATH (Optional[str]): Resolved config file, or `None` in environment-only mode.
    settings (Settings): Global singleton instance of `Settings`.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
BLOG_FILENAME: str = ".blog"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "BLOG_PLATFORM_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    1.  **Environment Variable**: `BLOG_PLATFORM_CONFIG_PATH` (if set and file exists).
    2.  **Blog Config**: `.blog` file in the project root directory.
    3.  **Dotenv Config**: `.env` file in the project root directory.
    4.  **Fallback**: `None`, triggering environment-variable-only mode.

    Returns:
        Optional[str]: The absolute path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    blog_path: Path = PROJECT_ROOT / BLOG_FILENAME
    if blog_path.exists():
        return str(blog_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode, CORS.
    *   **JWT**: Signing key and access token lifetime.
    *   **Passwords**: bcrypt cost factor used for every new hash.
    *   **Database**: MongoDB connection details.
    *   **Pagination**: Page size defaults and limits for post listings.

    **Validation:**
    Secrets must come from the environment or a config file, the MongoDB URL cannot be
    empty, and the bcrypt cost must stay within the range bcrypt accepts.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    APP_NAME: str = "Blog Platform API"
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: str = "http://localhost:3000"

    # JWT configuration
    SECRET_KEY: SecretStr = SecretStr("")  # Must be set in .blog or environment
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30 * 24 * 60  # 30 days

    # Password hashing
    PASSWORD_HASH_ROUNDS: int = 10

    # MongoDB configuration
    MONGODB_URL: str = ""  # Must be set in .blog or environment
    MONGODB_DATABASE: str = "blog_platform"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("SECRET_KEY", mode="before")
    @classmethod
    def no_hardcoded_secrets(cls, v: Any, info: Any) -> Any:
        """
        Validates that the signing secret is not empty or a placeholder.

        Raises:
            ValueError: If the value is empty, whitespace or an obvious placeholder.
        """
        raw = v.get_secret_value() if isinstance(v, SecretStr) else v
        if not raw or "change" in str(raw).lower() or "0000" in str(raw) or not str(raw).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .blog and not hardcoded!")
        return v

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """Validates that the MongoDB URL is not empty."""
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .blog and not empty!")
        return v

    @field_validator("PASSWORD_HASH_ROUNDS", mode="before")
    @classmethod
    def validate_hash_rounds(cls, v: Any) -> int:
        """bcrypt accepts cost factors between 4 and 31."""
        rounds = int(v)
        if rounds < 4 or rounds > 31:
            raise ValueError("PASSWORD_HASH_ROUNDS must be between 4 and 31")
        return rounds

    @field_validator("ACCESS_TOKEN_EXPIRE_MINUTES", "DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE", mode="before")
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @property
    def is_production(self) -> bool:
        """`True` when running with `ENVIRONMENT=production`."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cors_origins_list(self) -> List[str]:
        """`CORS_ORIGINS` split on commas, empty entries dropped."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings: Settings = Settings()
