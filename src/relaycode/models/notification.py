from __future__ import annotations

from dataclasses import dataclass

from relaycode.models.enums import NotificationType

__all__ = ["Notification"]


@dataclass(frozen=True, slots=True)
class Notification:
    """A transient message shown in the notification overlay.

    Attributes:
        type: Visual category.
        title: Short heading.
        message: Body text.
        duration: Seconds before the overlay hides itself. None uses the
            configured default.
    """

    type: NotificationType
    title: str
    message: str
    duration: int | None = None

    @classmethod
    def error(cls, title: str, message: str) -> Notification:
        return cls(type=NotificationType.ERROR, title=title, message=message)

    @classmethod
    def success(cls, title: str, message: str) -> Notification:
        return cls(type=NotificationType.SUCCESS, title=title, message=message)

    @classmethod
    def info(cls, title: str, message: str) -> Notification:
        return cls(type=NotificationType.INFO, title=title, message=message)
