"""Operator package for deploywatch.

Submodules
----------
coordinator -- DeploymentNotificationCoordinator: Idle/InProgress state machine per resource.
managers    -- ResourceManager capability interface, ArgoCdApplicationManager, dispatch table.
runner      -- Operator: watches plus periodic full sync feeding the sequencer.
"""

from deploywatch.operator.coordinator import DeploymentNotificationCoordinator, Outcome
from deploywatch.operator.managers import (
    APPLICATION,
    ArgoCdApplicationManager,
    ManagerDispatcher,
    ResourceManager,
    build_snapshot,
)
from deploywatch.operator.runner import Operator

__all__ = [
    "APPLICATION",
    "ArgoCdApplicationManager",
    "DeploymentNotificationCoordinator",
    "ManagerDispatcher",
    "Operator",
    "Outcome",
    "ResourceManager",
    "build_snapshot",
]
