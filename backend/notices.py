"""
Transient user-facing notices (toasts) with automatic dismissal.
"""

import itertools
import time

from pydantic import BaseModel

import settings


class Notice(BaseModel):
    id: int
    title: str
    description: str
    variant: str = "default"  # default | destructive
    duration: float
    expires_at: float


class NoticeBoard:
    """Holds notices until their duration runs out or they are dismissed."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._ids = itertools.count(1)
        self._notices: list[Notice] = []

    def post(
        self,
        title: str,
        description: str,
        variant: str = "default",
        duration: float | None = None,
    ) -> Notice:
        if duration is None:
            duration = (
                settings.ERROR_NOTICE_SECONDS
                if variant == "destructive"
                else settings.NOTICE_SECONDS
            )
        notice = Notice(
            id=next(self._ids),
            title=title,
            description=description,
            variant=variant,
            duration=duration,
            expires_at=self._clock() + duration,
        )
        self._notices.append(notice)
        return notice

    def error(self, title: str, description: str) -> Notice:
        return self.post(title, description, variant="destructive")

    def active(self) -> list[Notice]:
        """Drop expired notices and return the remaining ones, oldest first."""
        now = self._clock()
        self._notices = [n for n in self._notices if n.expires_at > now]
        return list(self._notices)

    def dismiss(self, notice_id: int) -> bool:
        before = len(self._notices)
        self._notices = [n for n in self._notices if n.id != notice_id]
        return len(self._notices) != before
