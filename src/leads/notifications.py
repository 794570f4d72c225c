"""Change notification channel.

Publishers announce that something on a floor changed; subscribers get the
topic name only and re-fetch what they need. In-process handlers are called
synchronously. Each publish also bumps a per-topic version in the cache so
viewers in other processes can poll :func:`changes`.

Delivery is best effort: a failing handler or an unavailable cache is logged
and never fails the write that triggered the publish.
"""
from __future__ import annotations

import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from leads.exceptions import ChannelFull

logger = logging.getLogger("jewellery")

VERSION_KEY = "pipeline:topic-version:{topic}"


def lead_topic(floor) -> str:
    return f"leads.floor.{int(floor)}"


def report_topic(floor) -> str:
    return f"reports.floor.{int(floor)}"


@dataclass(eq=False)
class Subscription:
    id: int
    topic: str
    handler: Callable[[str], None]
    last_active: float = field(default_factory=time.monotonic)
    active: bool = True


class _PublishAfterCommit:
    """on_commit callback; ``topic`` lets later writes find it and coalesce."""

    def __init__(self, channel, topic):
        self.channel = channel
        self.topic = topic
        self.dispatched = False

    def __call__(self):
        self.dispatched = True
        self.channel.publish(self.topic)


class ChangeChannel:
    """Bounded registry of topic subscriptions."""

    def __init__(self, max_subscriptions=None, idle_seconds=None):
        self._max_subscriptions = max_subscriptions
        self._idle_seconds = idle_seconds
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    @property
    def max_subscriptions(self) -> int:
        if self._max_subscriptions is not None:
            return self._max_subscriptions
        return settings.PIPELINE_MAX_SUBSCRIPTIONS

    @property
    def idle_seconds(self) -> float:
        if self._idle_seconds is not None:
            return self._idle_seconds
        return settings.PIPELINE_SUBSCRIPTION_IDLE_SECONDS

    # -- subscriptions ------------------------------------------------------

    def subscribe(self, topic: str, handler: Callable[[str], None]) -> Subscription:
        with self._lock:
            if len(self._subscriptions) >= self.max_subscriptions:
                self.reap_idle()
            if len(self._subscriptions) >= self.max_subscriptions:
                logger.warning("Subscription refused on %s: channel full", topic)
                raise ChannelFull()
            sub = Subscription(id=next(self._ids), topic=topic, handler=handler)
            self._subscriptions[sub.id] = sub
        logger.debug("Subscription %d opened on %s", sub.id, topic)
        return sub

    def unsubscribe(self, handle: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(handle.id, None)
        handle.active = False

    def touch(self, handle: Subscription) -> None:
        handle.last_active = time.monotonic()

    def reap_idle(self, max_idle: float | None = None) -> int:
        """Drop subscriptions idle for longer than *max_idle* seconds."""
        if max_idle is None:
            max_idle = self.idle_seconds
        cutoff = time.monotonic() - max_idle
        with self._lock:
            stale = [s for s in self._subscriptions.values() if s.last_active < cutoff]
            for sub in stale:
                self.unsubscribe(sub)
        if stale:
            logger.info("Reaped %d idle subscriptions", len(stale))
        return len(stale)

    def subscription_count(self, topic: str | None = None) -> int:
        with self._lock:
            if topic is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions.values() if s.topic == topic)

    def clear(self) -> None:
        with self._lock:
            for sub in list(self._subscriptions.values()):
                self.unsubscribe(sub)

    # -- publishing ---------------------------------------------------------

    def publish(self, topic: str) -> int | None:
        """Notify every subscriber of *topic* and return the new version."""
        version = _bump_version(topic)
        with self._lock:
            targets = [s for s in self._subscriptions.values() if s.topic == topic]
        for sub in targets:
            if not sub.active:
                continue
            try:
                sub.handler(topic)
            except Exception:
                logger.exception("Subscriber %d failed handling %s", sub.id, topic)
        return version

    def publish_on_commit(self, topic: str, using=None) -> None:
        """Publish *topic* once the current transaction commits.

        Several writes in one transaction produce a single notification per
        topic. Outside a transaction the publish happens immediately.
        """
        connection = transaction.get_connection(using)
        if connection.in_atomic_block:
            for entry in connection.run_on_commit:
                callback = entry[1]
                if (
                    isinstance(callback, _PublishAfterCommit)
                    and callback.channel is self
                    and callback.topic == topic
                    and not callback.dispatched
                ):
                    return
        transaction.on_commit(_PublishAfterCommit(self, topic), using=using)


def _bump_version(topic: str) -> int | None:
    key = VERSION_KEY.format(topic=topic)
    timeout = settings.PIPELINE_CHANGE_VERSION_TTL
    try:
        cache.add(key, 0, timeout)
        try:
            return cache.incr(key)
        except ValueError:
            # Key expired between add and incr.
            cache.set(key, 1, timeout)
            return 1
    except Exception as exc:
        logger.warning("Could not bump change version for %s: %s", topic, exc)
        return None


def current_version(topic: str) -> int:
    try:
        return int(cache.get(VERSION_KEY.format(topic=topic)) or 0)
    except Exception as exc:
        logger.warning("Could not read change version for %s: %s", topic, exc)
        return 0


def changes(topic: str, since=None) -> dict:
    """Polling view of a topic: current version and whether it moved past *since*."""
    version = current_version(topic)
    if since is None:
        changed = version > 0
    else:
        changed = version != int(since)
    return {"topic": topic, "version": version, "changed": changed}


channel = ChangeChannel()

subscribe = channel.subscribe
unsubscribe = channel.unsubscribe
publish = channel.publish
publish_on_commit = channel.publish_on_commit
touch = channel.touch
reap_idle = channel.reap_idle


def subscribe_to_lead_changes(floor, handler) -> Subscription:
    return channel.subscribe(lead_topic(floor), handler)


def subscribe_to_report_changes(floor, handler) -> Subscription:
    return channel.subscribe(report_topic(floor), handler)
