from __future__ import annotations

"""Notification port used by the scheduler, plus tray and null implementations.

The scheduler only decides *when* to notify. Delivery is best effort:
 - ``request_permission`` reports whether notifications can be shown at all.
 - ``notify`` never raises into the scheduler; failures are logged and dropped.
 - Do Not Disturb (``notifications.dnd`` setting) suppresses balloons only.
"""

import logging
from typing import Any, Mapping, Optional

from PyQt6.QtCore import QObject
from PyQt6.QtGui import QIcon
from PyQt6.QtWidgets import QSystemTrayIcon

from .database_manager import DatabaseManager
from .models import NotificationKind
from .repositories import get_setting, set_setting
from .scheduler import NotificationPort

_log = logging.getLogger(__name__)

DND_KEY = "notifications.dnd"
APP_TITLE = "Focus Planner"


def render_message(kind: NotificationKind, payload: Optional[Mapping[str, Any]] = None) -> tuple[str, str]:
    """Return ``(title, body)`` for a notification kind."""
    if kind is NotificationKind.WORK_SESSION_COMPLETE:
        return "Session Complete! 🎉", "Great work! Take a well-deserved break."
    if kind is NotificationKind.BREAK_COMPLETE:
        return "Break Over! 💪", "Ready to get back to work? Let's crush the next session!"
    title = (payload or {}).get("task_title") or "your task"
    return "Task Complete! 🌟", f'You crushed "{title}"! Amazing work!'


class NullNotifier:
    """Port used when no tray is available; drops everything."""

    def request_permission(self) -> bool:
        return False

    def notify(self, kind: NotificationKind, payload: Optional[Mapping[str, Any]] = None) -> None:
        _log.debug("notification dropped: %s", kind.value)


class TrayNotifier(QObject):  # pragma: no cover - UI heavy
    TIMEOUT_MS = 5000

    def __init__(self, db: DatabaseManager, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._db = db
        self._tray: QSystemTrayIcon | None = None
        self._granted = False

    # --- Port ----------------------------------------------------------
    def request_permission(self) -> bool:
        if self._granted:
            return True
        if not QSystemTrayIcon.isSystemTrayAvailable():
            _log.warning("system tray unavailable; notifications disabled")
            return False
        self._tray = QSystemTrayIcon(self)
        self._tray.setToolTip(APP_TITLE)
        # Empty fallback icon; packaging can bundle a real one.
        self._tray.setIcon(QIcon())
        self._tray.setVisible(True)
        self._granted = True
        return True

    def notify(self, kind: NotificationKind, payload: Optional[Mapping[str, Any]] = None) -> None:
        if not self._granted or self._tray is None:
            return
        if self.is_dnd():
            return
        title, body = render_message(kind, payload)
        try:
            self._tray.showMessage(title, body, QSystemTrayIcon.MessageIcon.Information, self.TIMEOUT_MS)
        except Exception:
            _log.warning("tray notification failed", exc_info=True)

    # --- Do Not Disturb ------------------------------------------------
    def is_dnd(self) -> bool:
        return get_setting(self._db, DND_KEY) == "1"

    def set_dnd(self, enabled: bool) -> None:
        set_setting(self._db, DND_KEY, "1" if enabled else "0")


__all__ = [
    "NotificationKind",
    "NotificationPort",
    "NullNotifier",
    "TrayNotifier",
    "render_message",
    "DND_KEY",
]
