"""Cache layer for deploywatch.

Submodules:
    resource_cache -- ResourceStateCache: last snapshot plus notification
                      bookkeeping for every observed Application.
"""

from deploywatch.cache.resource_cache import ResourceStateCache

__all__ = ["ResourceStateCache"]
