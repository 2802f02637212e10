"""User-visible notices (the converter's blocking alerts).

Errors that must reach the user are posted here with a title and message in
a consistent shape; the HTML screen pops and displays them as an alert.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List

logger = logging.getLogger("fxconvert.notices")

MAX_PENDING = 20


@dataclass(frozen=True)
class Notice:
    title: str
    message: str

    def as_dict(self) -> dict:
        return {"title": self.title, "message": self.message}


class NoticeBoard:
    def __init__(self, maxlen: int = MAX_PENDING):
        self._pending: Deque[Notice] = deque(maxlen=maxlen)

    def post(self, title: str, message: str) -> Notice:
        notice = Notice(title=title, message=message)
        self._pending.append(notice)
        logger.info("notice posted: %s - %s", title, message)
        return notice

    def pending(self) -> List[Notice]:
        return list(self._pending)

    def pop_all(self) -> List[Notice]:
        notices = list(self._pending)
        self._pending.clear()
        return notices


__all__ = ["Notice", "NoticeBoard"]
