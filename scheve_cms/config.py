# scheve_cms/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Local dev convenience: loads from .env if present.
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass(frozen=True)
class Settings:
    """
    Process configuration, read once from the environment.

    DATABASE_URL is validated by scheve_cms.db (it is the only hard requirement).
    """

    database_url: str | None = None
    storage_backend: str = "local"  # local | s3
    storage_root: Path = Path("storage")
    s3_bucket: str | None = None
    aws_region: str = "us-east-1"
    aws_profile: str | None = None
    currency_symbol: str = "€"
    payment_term_days: int = 14
    fonts_dir: Path | None = None
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "Settings":
        backend = (os.getenv("STORAGE_BACKEND") or "local").strip().lower()
        if backend not in ("local", "s3"):
            raise RuntimeError(f"STORAGE_BACKEND must be 'local' or 's3', got {backend!r}")

        fonts_dir = os.getenv("FONTS_DIR")

        return cls(
            database_url=os.getenv("DATABASE_URL"),
            storage_backend=backend,
            storage_root=Path(os.getenv("STORAGE_ROOT") or "storage"),
            s3_bucket=os.getenv("S3_BUCKET"),
            aws_region=os.getenv("AWS_REGION") or "us-east-1",
            aws_profile=os.getenv("AWS_PROFILE"),
            currency_symbol=os.getenv("CURRENCY_SYMBOL") or "€",
            payment_term_days=_env_int("PAYMENT_TERM_DAYS", 14),
            fonts_dir=Path(fonts_dir) if fonts_dir else None,
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
            cors_origins=_env_list(
                "CORS_ORIGINS",
                [
                    "http://localhost:3000",
                    "http://127.0.0.1:3000",
                    "http://localhost:5173",
                    "http://127.0.0.1:5173",
                ],
            ),
        )


_settings_singleton: Settings | None = None


def get_settings() -> Settings:
    global _settings_singleton
    if _settings_singleton is None:
        _settings_singleton = Settings.from_env()
    return _settings_singleton

