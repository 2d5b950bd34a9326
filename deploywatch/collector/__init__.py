"""Collector package for deploywatch.

Turns Kubernetes watch streams into a strictly ordered sequence of refined
events.

Submodules
----------
watcher    -- WatchSubscription / WatchManager: reconnect with exponential back-off.
sequencer  -- EventSequencer: one FIFO, one handler at a time.
classifier -- refine_event_type: (phase, object) -> Added/Modified/UpToDate/Deleting/Deleted.
lister     -- CustomResourceLister: one-shot list for the periodic full sync.
"""

from deploywatch.collector.classifier import classify, refine_event_type
from deploywatch.collector.sequencer import EventSequencer
from deploywatch.collector.watcher import SubscriptionError, SubscriptionState, WatchManager, WatchSubscription

__all__ = [
    "EventSequencer",
    "SubscriptionError",
    "SubscriptionState",
    "WatchManager",
    "WatchSubscription",
    "classify",
    "refine_event_type",
]
