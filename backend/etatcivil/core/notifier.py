"""
User-facing notifications: in-app toasts and desktop notifications.

Toasts are non-blocking alerts that auto-dismiss. Desktop notifications go
through a pluggable backend and are only shown once permission was granted.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Protocol

from etatcivil.config import get_settings
from etatcivil.core.exceptions import PermissionDeniedError

logger = logging.getLogger(__name__)


# ── Toasts ───────────────────────────────────────────────

class ToastLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


@dataclass
class Toast:
    message: str
    level: ToastLevel = ToastLevel.INFO
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ToastNotifier:
    """Collects toasts; `active` holds the ones not yet dismissed."""

    def __init__(self, sink: Callable[[Toast], None] | None = None, timeout: float | None = None):
        self._sink = sink
        self._timeout = timeout if timeout is not None else get_settings().TOAST_TIMEOUT_SECONDS
        self.history: list[Toast] = []
        self.active: list[Toast] = []

    def show(self, message: str, level: ToastLevel = ToastLevel.INFO) -> Toast:
        toast = Toast(message=message, level=ToastLevel(level))
        self.history.append(toast)
        self.active.append(toast)

        log = logger.warning if toast.level in (ToastLevel.WARNING, ToastLevel.DANGER) else logger.info
        log(f"[toast:{toast.level.value}] {message}")

        if self._sink:
            self._sink(toast)
        _call_later(self._timeout, self.dismiss, toast)
        return toast

    def dismiss(self, toast: Toast) -> None:
        if toast in self.active:
            self.active.remove(toast)

    def of_level(self, level: ToastLevel) -> list[Toast]:
        return [t for t in self.history if t.level == level]


# ── Desktop notifications ────────────────────────────────

class Permission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class NotificationHandle(Protocol):
    def close(self) -> None: ...


class NotificationBackend(Protocol):
    """Platform notification capability."""

    def is_supported(self) -> bool: ...

    @property
    def permission(self) -> Permission: ...

    def request_permission(self) -> Permission: ...

    def show(self, title: str, body: str, on_click: Callable[[], None]) -> NotificationHandle:
        """Raises PermissionDeniedError unless permission was granted."""
        ...


@dataclass
class LoggedNotification:
    title: str
    body: str
    on_click: Callable[[], None]
    closed: bool = False

    def close(self) -> None:
        self.closed = True

    def click(self) -> None:
        self.on_click()


class LogNotificationBackend:
    """Backend that records notifications and writes them to the log."""

    def __init__(self, permission: Permission = Permission.DEFAULT, grant_on_request: bool = True,
                 supported: bool = True):
        self._permission = Permission(permission)
        self._grant_on_request = grant_on_request
        self._supported = supported
        self.permission_requests = 0
        self.shown: list[LoggedNotification] = []

    def is_supported(self) -> bool:
        return self._supported

    @property
    def permission(self) -> Permission:
        return self._permission

    def request_permission(self) -> Permission:
        self.permission_requests += 1
        self._permission = Permission.GRANTED if self._grant_on_request else Permission.DENIED
        return self._permission

    def show(self, title: str, body: str, on_click: Callable[[], None]) -> LoggedNotification:
        if not self._supported or self._permission != Permission.GRANTED:
            raise PermissionDeniedError()
        notification = LoggedNotification(title=title, body=body, on_click=on_click)
        self.shown.append(notification)
        logger.info(f"🔔 {title}: {body}")
        return notification


class DesktopNotifier:
    """Shows desktop notifications when the platform allows it.

    Permission is asked at most once (`setup()`); a denial is final.
    """

    def __init__(
        self,
        backend: NotificationBackend | None = None,
        focus_window: Callable[[], None] | None = None,
        timeout: float | None = None,
    ):
        self.backend = backend or LogNotificationBackend()
        self._focus_window = focus_window or (lambda: None)
        self._timeout = timeout if timeout is not None else get_settings().NOTIFICATION_TIMEOUT_SECONDS

    @property
    def enabled(self) -> bool:
        return self.backend.is_supported() and self.backend.permission == Permission.GRANTED

    def setup(self) -> Permission | None:
        """Request permission lazily. Never re-asks after a denial."""
        if not self.backend.is_supported():
            logger.info("Desktop notifications unsupported on this platform")
            return None

        permission = self.backend.permission
        if permission == Permission.DEFAULT:
            permission = self.backend.request_permission()
            if permission == Permission.GRANTED:
                logger.info("🔔 Desktop notifications allowed")
        return permission

    def notify(self, title: str, body: str) -> bool:
        """Show one notification. Returns False when silently skipped."""
        handle = None

        def _on_click():
            self._focus_window()
            if handle is not None:
                handle.close()

        if not self.backend.is_supported():
            return False
        try:
            handle = self.backend.show(title, body, _on_click)
        except PermissionDeniedError:
            logger.debug(f"Notification skipped, permission {self.backend.permission.value}")
            return False
        _call_later(self._timeout, handle.close)
        return True


def _call_later(delay: float, callback: Callable, *args) -> None:
    """Schedule a callback on the running loop; no-op outside a loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    loop.call_later(delay, callback, *args)
