import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv
from fastapi import Request


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass
class Settings:
    jwt_secret: str
    database_url: str = "sqlite:///./todos.db"
    environment: str = "development"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    token_ttl_days: int = 7
    bcrypt_rounds: int = 10
    cookie_secure: bool = False
    public_categories: bool = True
    login_generic_errors: bool = False
    rate_limit_enabled: bool = True
    trust_proxy_headers: bool = False
    rate_limit_window: int = 15 * 60
    auth_rate_limit: int = 100
    public_rate_limit: int = 500
    user_rate_limit: int = 1000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        secret = os.getenv("JWT_SECRET")
        if not secret:
            raise RuntimeError("JWT_SECRET is not set")

        environment = os.getenv("APP_ENV", "development")
        return cls(
            jwt_secret=secret,
            database_url=os.getenv("DATABASE_URL", "sqlite:///./todos.db"),
            environment=environment,
            allowed_origins=[o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()],
            token_ttl_days=_env_int("TOKEN_TTL_DAYS", 7),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 10),
            cookie_secure=_env_bool("COOKIE_SECURE", environment == "production"),
            public_categories=_env_bool("PUBLIC_CATEGORIES", True),
            login_generic_errors=_env_bool("LOGIN_GENERIC_ERRORS", False),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            trust_proxy_headers=_env_bool("TRUST_PROXY_HEADERS", False),
            rate_limit_window=_env_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
            auth_rate_limit=_env_int("AUTH_RATE_LIMIT", 100),
            public_rate_limit=_env_int("PUBLIC_RATE_LIMIT", 500),
            user_rate_limit=_env_int("USER_RATE_LIMIT", 1000),
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
