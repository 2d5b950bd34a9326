"""deploywatch: one coalesced Slack message per Argo CD deployment."""

__version__ = "0.1.0"
