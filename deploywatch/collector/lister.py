"""One-shot listing of custom resources, used by the periodic full sync."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from kubernetes_asyncio.client.exceptions import ApiException

from deploywatch.models.resources import CrdConfig, Scope

if TYPE_CHECKING:
    from kubernetes_asyncio.client import CustomObjectsApi

_log = structlog.get_logger(component="collector.lister")


class CustomResourceLister:
    """Lists every object of a kind in the configured namespace (or cluster)."""

    def __init__(self, api: CustomObjectsApi, group: str, version: str, namespace: str) -> None:
        self._api = api
        self._group = group
        self._version = version
        self._namespace = namespace

    async def list_all(self, crd: CrdConfig) -> list[dict[str, Any]]:
        """Return the raw objects of *crd*; an API error yields an empty list.

        Only the first page is read. When the server reports more items a
        warning is logged with the remaining count.
        """
        where = f"namespace '{self._namespace}'" if crd.scope == Scope.NAMESPACED else "cluster"
        try:
            if crd.scope == Scope.NAMESPACED:
                body = await self._api.list_namespaced_custom_object(
                    self._group, self._version, self._namespace, crd.plural
                )
            else:
                body = await self._api.list_cluster_custom_object(self._group, self._version, crd.plural)
        except ApiException as exc:
            _log.error(
                "list_custom_objects_failed",
                plural=crd.plural,
                scope=where,
                status=exc.status,
                reason=exc.reason,
            )
            return []

        metadata = body.get("metadata") or {}
        if metadata.get("continue"):
            _log.warning(
                "list_truncated",
                plural=crd.plural,
                scope=where,
                remaining=metadata.get("remainingItemCount"),
            )
        items = body.get("items") or []
        _log.debug("list_custom_objects", plural=crd.plural, scope=where, count=len(items))
        return list(items)
