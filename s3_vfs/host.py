from __future__ import annotations
"""Boundary with the host application's view system."""
import logging
from typing import Callable, Protocol, runtime_checkable

from .models import PropertyChangeEvent

LIST_BUCKETS = "s3.list_buckets"
PROP_NAME = "name"

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class Identity(Protocol):
    """What the host needs to cache, match and display an open view."""

    @property
    def name(self) -> str: ...

    @property
    def path(self) -> str: ...

    def __eq__(self, other: object) -> bool: ...

    def __hash__(self) -> int: ...


class ViewHost(Protocol):
    """Services the host application exposes to bucket views."""

    def notify_property_changed(self, event: PropertyChangeEvent) -> None: ...

    def open_views(self) -> list[object]: ...

    def close_view(self, view: object) -> None: ...

    def refresh(self, tag: str) -> None: ...

    def notify_error(self, message: str) -> None: ...


class ViewRegistry:
    """In-memory host: tracks open views and records notifications.

    Callbacks let an embedding UI react to closes, refreshes and errors.
    All methods are expected to run on the UI thread.
    """

    def __init__(self):
        self._views: list[object] = []
        self.events: list[PropertyChangeEvent] = []
        self.refresh_requests: list[str] = []
        self.errors: list[str] = []
        self._listeners: list[Callable[[PropertyChangeEvent], None]] = []
        self._on_close: list[Callable[[object], None]] = []
        self._on_refresh: list[Callable[[str], None]] = []
        self._on_error: list[Callable[[str], None]] = []

    def add_property_listener(self, listener: Callable[[PropertyChangeEvent], None]) -> None:
        self._listeners.append(listener)

    def add_close_listener(self, listener: Callable[[object], None]) -> None:
        self._on_close.append(listener)

    def add_refresh_listener(self, listener: Callable[[str], None]) -> None:
        self._on_refresh.append(listener)

    def add_error_listener(self, listener: Callable[[str], None]) -> None:
        self._on_error.append(listener)

    def open_view(self, view: object) -> None:
        if not self.is_open(view):
            self._views.append(view)

    def is_open(self, view: object) -> bool:
        return any(existing is view for existing in self._views)

    def open_views(self) -> list[object]:
        return list(self._views)

    def close_view(self, view: object) -> None:
        self._views = [existing for existing in self._views if existing is not view]
        for listener in self._on_close:
            listener(view)

    def notify_property_changed(self, event: PropertyChangeEvent) -> None:
        self.events.append(event)
        for listener in self._listeners:
            listener(event)

    def refresh(self, tag: str) -> None:
        self.refresh_requests.append(tag)
        for listener in self._on_refresh:
            listener(tag)

    def notify_error(self, message: str) -> None:
        LOGGER.error(message)
        self.errors.append(message)
        for listener in self._on_error:
            listener(message)
