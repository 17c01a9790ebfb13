"""Tool configuration loaded from DVM_* environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class DvmSettings(BaseSettings):
    """dvm settings.

    All fields are read from environment variables with the ``DVM_`` prefix.
    For example, ``DVM_LOG_LEVEL=DEBUG`` maps to ``log_level``.

    ``DVM_APP`` and ``DVM_WORKSPACE`` are **not** managed here -- they are
    per-invocation overrides read by the context resolver, consulted only
    after flags and the persisted context.
    """

    model_config = SettingsConfigDict(
        env_prefix="DVM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "WARNING"

    log_file: str | None = None
    """Optional path of a rotating DEBUG-level log file, e.g. ``~/.devopsmaestro/dvm.log``."""

    # -- Storage ---------------------------------------------------------------
    data_dir: str = "~/.devopsmaestro"
    """Root directory for the database and other local state."""

    database_url: str | None = None
    """SQLAlchemy URL.  Defaults to ``sqlite:///{data_dir}/devopsmaestro.db``."""

    # -- Container runtime -----------------------------------------------------
    platform: str | None = None
    """Force a specific platform (orbstack, colima, docker-desktop, podman, linux-native)."""

    runtime_timeout: float = 30.0
    """Seconds before a platform call is abandoned and reported as a communication failure."""

    container_prefix: str = "dvm"
    """Prefix joined with app and workspace names to form container names."""

    stop_timeout: int = 10
    """Seconds a container is given to exit before it is killed."""

    # -- Helpers ---------------------------------------------------------------

    def resolve_data_dir(self) -> Path:
        return Path(self.data_dir).expanduser()

    def resolve_database_url(self) -> str:
        """Return the configured URL or the default SQLite file under ``data_dir``."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.resolve_data_dir() / 'devopsmaestro.db'}"


def get_settings() -> DvmSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> DvmSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return DvmSettings()


# Apply lru_cache at runtime so the function is only called once.
from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
