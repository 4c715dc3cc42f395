import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_path: str = "todo.db"
    authentik_issuer: str = "http://localhost:9000/application/o/tasks/"
    authentik_jwks_url: str = ""
    client_id: str = ""
    auth_algorithms: tuple = ("RS256",)
    jwks_cache_ttl: int = 3600
    cors_origins: tuple = ("http://localhost:5173",)
    login_url: str = "/login"
    enforce_list_ownership: bool = True
    log_level: str = "INFO"

    @property
    def jwks_url(self) -> str:
        return self.authentik_jwks_url or f"{self.authentik_issuer}jwks/"

    @classmethod
    def from_env(cls) -> "Settings":
        issuer = os.getenv("AUTHENTIK_ISSUER", cls.authentik_issuer).rstrip("/") + "/"
        return cls(
            database_path=os.getenv("DATABASE_PATH", cls.database_path),
            authentik_issuer=issuer,
            authentik_jwks_url=os.getenv("AUTHENTIK_JWKS_URL", ""),
            client_id=os.getenv("CLIENT_ID", ""),
            auth_algorithms=tuple(_split(os.getenv("AUTH_ALGORITHMS", "RS256"))),
            jwks_cache_ttl=int(os.getenv("JWKS_CACHE_TTL", str(cls.jwks_cache_ttl))),
            cors_origins=tuple(_split(os.getenv("CORS_ORIGINS", ",".join(cls.cors_origins)))),
            login_url=os.getenv("LOGIN_URL", cls.login_url),
            enforce_list_ownership=_flag(os.getenv("ENFORCE_LIST_OWNERSHIP", "true")),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
