"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from deploywatch.models.config import (
    DeployWatchConfig,
    DiffConfig,
    HealthConfig,
    KubernetesConfig,
    LogConfig,
    SlackConfig,
    WatchConfig,
)


class ConfigError(ValueError):
    """Raised when a required setting is missing or invalid."""


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"DEPLOYWATCH_{key}", default)


def _env_required(key: str, default: str) -> str:
    val = _env(key, default).strip()
    if not val:
        raise ConfigError(f"DEPLOYWATCH_{key} must not be empty")
    return val


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError as exc:
        raise ConfigError(f"DEPLOYWATCH_{key} must be an integer, got: {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    raw = _env(key, str(default))
    try:
        val = float(raw)
    except ValueError as exc:
        raise ConfigError(f"DEPLOYWATCH_{key} must be a number, got: {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "verbose", "info", "warn", "warning", "error"}
    if value.lower() not in valid:
        raise ConfigError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _load_watch() -> WatchConfig:
    initial = _env_float("WATCH_INITIAL_DELAY", 5.0, min_val=0.1)
    return WatchConfig(
        initial_delay=initial,
        backoff_factor=_env_float("WATCH_BACKOFF_FACTOR", 2.0, min_val=1.0),
        # The cap can never be lower than the first delay
        max_delay=_env_float("WATCH_MAX_DELAY", 300.0, min_val=initial),
        timeout_seconds=_env_int("WATCH_TIMEOUT", 300, min_val=10, max_val=3600),
        full_sync_interval=_env_int("FULL_SYNC_INTERVAL", 0, min_val=0),
    )


def _load_slack() -> SlackConfig:
    token = _env("SLACK_TOKEN", "")
    channel_id = _env("SLACK_CHANNEL_ID", "")
    if token and not channel_id:
        raise ConfigError("DEPLOYWATCH_SLACK_CHANNEL_ID is required when DEPLOYWATCH_SLACK_TOKEN is set")
    return SlackConfig(
        token=token,
        channel_id=channel_id,
        argocd_url=_env("ARGOCD_URL", ""),
        environment=_env("ENVIRONMENT", "production"),
    )


def load_config() -> DeployWatchConfig:
    """Load configuration from DEPLOYWATCH_* environment variables.

    Raises:
        ConfigError: if a required identifier is empty or a value is malformed.
    """
    return DeployWatchConfig(
        kubernetes=KubernetesConfig(
            group=_env_required("K8S_CRD_GROUP", "argoproj.io"),
            version=_env_required("K8S_CRD_VERSION", "v1alpha1"),
            namespace=_env_required("K8S_NAMESPACE", "argocd"),
        ),
        watch=_load_watch(),
        slack=_load_slack(),
        diff=DiffConfig(
            context_lines=_env_int("DIFF_CONTEXT_LINES", 3, min_val=0, max_val=20),
        ),
        health=HealthConfig(
            enabled=_env_bool("HEALTH_ENABLED", True),
            port=_env_int("HEALTH_PORT", 3000, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
