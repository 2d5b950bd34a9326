"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class KubernetesConfig:
    """Which custom resources to watch."""

    group: str = "argoproj.io"
    version: str = "v1alpha1"
    namespace: str = "argocd"


@dataclass
class WatchConfig:
    """Watch reconnection and full-sync settings."""

    initial_delay: float = 5.0
    backoff_factor: float = 2.0
    max_delay: float = 300.0
    timeout_seconds: int = 300
    full_sync_interval: int = 0


@dataclass
class SlackConfig:
    """Slack Web API credentials and message decoration."""

    token: str = ""
    channel_id: str = ""
    argocd_url: str = ""
    environment: str = "production"


@dataclass
class DiffConfig:
    """Change summary rendering."""

    context_lines: int = 3


@dataclass
class HealthConfig:
    """Liveness / metrics HTTP endpoint."""

    enabled: bool = True
    port: int = 3000


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class DeployWatchConfig:
    """Top-level deploywatch configuration."""

    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    log: LogConfig = field(default_factory=LogConfig)
