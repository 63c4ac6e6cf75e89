"""
Operator notifications.

The core calls ``notify(message, options)`` and moves on; it never reads
anything back. Where the message ends up (log, terminal, a list for
tests or JSON output) is the notifier's business.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

import click

logger = logging.getLogger(__name__)


class NotifyOption(StrEnum):
    CLOSE_BUTTON = "closeButton"
    NO_AUTOMATIC_CLOSE = "noAutomaticClose"
    ERROR = "error"


# Lifecycle and update notifications stay on screen until dismissed.
STICKY = frozenset({NotifyOption.CLOSE_BUTTON, NotifyOption.NO_AUTOMATIC_CLOSE})
STICKY_ERROR = STICKY | {NotifyOption.ERROR}

MESSAGES: dict[str, str] = {
    "startBundleSuccess": "Bundle started",
    "startBundleError": "Failed to start bundle",
    "stopBundleSuccess": "Bundle stopped",
    "stopBundleError": "Failed to stop bundle",
    "refreshBundleSuccess": "Bundle refreshed",
    "refreshBundleError": "Failed to refresh bundle",
    "updateAllSuccess": "All modules updated",
    "updateAllError": "Failed to update modules",
    "fetchUpdates": "Fetching available updates",
    "fetchUpdatesError": "Failed to fetch available updates",
    "loadingData": "Failed to load module data",
    "loadingModuleData": "Failed to load bundle details",
}


def message(key: str) -> str:
    """Operator-facing text for a message key (the key itself if unknown)."""
    return MESSAGES.get(key, key)


class Notifier(ABC):
    """Fire-and-forget sink for operator notifications."""

    @abstractmethod
    def notify(self, message: str, options: Iterable[str] = ()) -> None:
        """Show ``message`` to the operator."""


class LogNotifier(Notifier):
    """Sends notifications to the ``bundlectl`` log."""

    def notify(self, message: str, options: Iterable[str] = ()) -> None:
        logger.info("notify: %s", message)


class ConsoleNotifier(Notifier):
    """Prints notifications on the terminal; failures go to stderr in red."""

    def notify(self, message: str, options: Iterable[str] = ()) -> None:
        is_error = NotifyOption.ERROR in {str(o) for o in options}
        click.secho(f"{'❌' if is_error else '🔔'} {message}", fg="red" if is_error else "cyan", err=is_error)


@dataclass
class Notification:
    message: str
    options: frozenset[str] = field(default_factory=frozenset)


class CollectingNotifier(Notifier):
    """Keeps every notification in memory (tests, JSON output)."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, message: str, options: Iterable[str] = ()) -> None:
        self.notifications.append(Notification(message=message, options=frozenset(str(o) for o in options)))

    @property
    def messages(self) -> list[str]:
        return [n.message for n in self.notifications]

    def clear(self) -> None:
        self.notifications.clear()
