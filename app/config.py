"""Process-wide configuration.

Settings are selected by ``APP_ENV`` (``staging`` or ``production``) and can be
overridden field by field through environment variables. The resulting value
is frozen and handed to every service at construction time.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

__all__ = [
    "TOKEN_TTL_MS",
    "Settings",
    "ENVIRONMENTS",
    "load_settings",
]

TOKEN_TTL_MS = 60 * 60 * 1000
DEFAULT_DATA_DIR = Path(".data")


@dataclass(frozen=True)
class Settings:
    """Read-only runtime configuration."""

    env_name: str
    http_port: int
    https_port: int
    hashing_secret: str
    host: str = "0.0.0.0"
    max_checks: int = 5
    max_timeout_seconds: int = 5
    token_ttl_ms: int = TOKEN_TTL_MS
    data_dir: Path = DEFAULT_DATA_DIR
    tls_cert_file: Path | None = None
    tls_key_file: Path | None = None

    @property
    def https_enabled(self) -> bool:
        return self.tls_cert_file is not None and self.tls_key_file is not None


ENVIRONMENTS: dict[str, Settings] = {
    "staging": Settings(
        env_name="staging",
        http_port=3000,
        https_port=3001,
        hashing_secret="devSecret",
    ),
    "production": Settings(
        env_name="production",
        http_port=5000,
        https_port=5001,
        hashing_secret="prodSecret",
    ),
}


def _int_from(environ: Mapping[str, str], name: str, default: int, *, minimum: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        val = int(raw, 10)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer") from e
    if val < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return val


def _path_from(environ: Mapping[str, str], name: str) -> Path | None:
    raw = environ.get(name)
    return Path(raw) if raw else None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from the environment.

    Unknown or missing ``APP_ENV`` values fall back to staging.
    """
    environ = os.environ if environ is None else environ
    env_name = environ.get("APP_ENV", "").strip().lower()
    base = ENVIRONMENTS.get(env_name, ENVIRONMENTS["staging"])

    return replace(
        base,
        host=environ.get("HOST") or base.host,
        http_port=_int_from(environ, "HTTP_PORT", base.http_port, minimum=0),
        https_port=_int_from(environ, "HTTPS_PORT", base.https_port, minimum=0),
        hashing_secret=environ.get("HASHING_SECRET") or base.hashing_secret,
        max_checks=_int_from(environ, "MAX_CHECKS", base.max_checks, minimum=1),
        max_timeout_seconds=_int_from(
            environ, "MAX_TIMEOUT_SECONDS", base.max_timeout_seconds, minimum=1
        ),
        data_dir=_path_from(environ, "DATA_DIR") or base.data_dir,
        tls_cert_file=_path_from(environ, "TLS_CERT_FILE"),
        tls_key_file=_path_from(environ, "TLS_KEY_FILE"),
    )
