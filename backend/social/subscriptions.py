"""
Live Queries
============

A subscription watches a queryset and pushes changes to a callback:

    sub = subscribe(list_posts(), on_change)
    ...
    sub.close()

DELIVERY:
---------
1. On subscribe: every current row, as ADDED changes, in queryset order
2. After each committed save touching the model:
   - row now matches, was unknown  → ADDED
   - row now matches, was known    → MODIFIED
   - row no longer matches         → REMOVED
3. After each committed delete of a known row → REMOVED

Changes are published from transaction.on_commit (see signals.py), so a
subscriber never sees a write that later rolled back.

ORDERING:
Per subscriber, changes arrive in commit order of this process. Nothing
is promised across processes.

CANCELLATION:
close() is idempotent. Once it returns, the callback is never called again.

LIMITATION:
QuerySet.update() and bulk_create() do not send model signals, so writes
made that way are invisible here. The services never use them on
watched models.
"""
import logging
import threading
from collections import defaultdict
from typing import Callable, List

from django.db.models import QuerySet

from .queries import list_comments_for_post, list_posts, list_users, messages_in_channel

logger = logging.getLogger(__name__)

ADDED = 'added'
MODIFIED = 'modified'
REMOVED = 'removed'


class Change:
    def __init__(self, type: str, instance, pk=None):
        self.type = type
        self.instance = instance
        self.pk = pk if pk is not None else instance.pk

    def __repr__(self):
        return f"Change({self.type!r}, {self.instance.__class__.__name__} {self.pk})"


class Subscription:
    """A live view of one queryset. Create with subscribe()."""

    def __init__(self, queryset: QuerySet, callback: Callable[[List[Change]], None]):
        if queryset.query.is_sliced:
            raise ValueError("Cannot subscribe to a sliced queryset.")
        self.model = queryset.model
        self._queryset = queryset
        self._callback = callback
        self._known_ids = set()
        self._lock = threading.RLock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def _deliver(self, changes: List[Change]) -> None:
        with self._lock:
            if not self._active or not changes:
                return
            try:
                self._callback(changes)
            except Exception:
                # One broken subscriber must not break the writer's commit
                logger.exception(f"Subscriber callback failed for {self.model.__name__}")

    def _start(self) -> None:
        with self._lock:
            rows = list(self._queryset)
            self._known_ids = {row.pk for row in rows}
            self._deliver([Change(ADDED, row) for row in rows])

    def _matches(self, instance) -> bool:
        return self._queryset.filter(pk=instance.pk).exists()

    def notify_saved(self, instance) -> None:
        with self._lock:
            if not self._active:
                return
            if self._matches(instance):
                change_type = MODIFIED if instance.pk in self._known_ids else ADDED
                self._known_ids.add(instance.pk)
            elif instance.pk in self._known_ids:
                self._known_ids.discard(instance.pk)
                change_type = REMOVED
            else:
                return
            self._deliver([Change(change_type, instance)])

    def notify_deleted(self, instance, pk) -> None:
        with self._lock:
            if not self._active or pk not in self._known_ids:
                return
            self._known_ids.discard(pk)
            self._deliver([Change(REMOVED, instance, pk=pk)])

    def close(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        _registry.remove(self)


class _Registry:
    def __init__(self):
        self._lock = threading.Lock()
        self._by_model = defaultdict(list)

    def add(self, subscription: Subscription) -> None:
        with self._lock:
            self._by_model[subscription.model].append(subscription)

    def remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._by_model.get(subscription.model, [])
            if subscription in subscribers:
                subscribers.remove(subscription)

    def for_model(self, model) -> List[Subscription]:
        with self._lock:
            return list(self._by_model.get(model, []))

    def clear(self) -> None:
        with self._lock:
            self._by_model.clear()


_registry = _Registry()


def has_subscribers(model) -> bool:
    return bool(_registry.for_model(model))


def publish_saved(model, instance) -> None:
    for subscription in _registry.for_model(model):
        subscription.notify_saved(instance)


def publish_deleted(model, instance, pk) -> None:
    for subscription in _registry.for_model(model):
        subscription.notify_deleted(instance, pk)


def subscribe(queryset: QuerySet, callback: Callable[[List[Change]], None]) -> Subscription:
    """Start a live query. The callback gets the current rows immediately."""
    subscription = Subscription(queryset, callback)
    # Publishers block on the lock until the snapshot is taken, so a commit
    # racing the subscribe shows up as MODIFIED, never as a second ADDED.
    with subscription._lock:
        _registry.add(subscription)
        subscription._start()
    return subscription


def watch_posts(callback) -> Subscription:
    return subscribe(list_posts(), callback)


def watch_comments(post_id, callback) -> Subscription:
    return subscribe(list_comments_for_post(post_id), callback)


def watch_messages(channel: str, callback, viewer=None) -> Subscription:
    return subscribe(messages_in_channel(channel, viewer), callback)


def watch_users(callback) -> Subscription:
    return subscribe(list_users(), callback)
