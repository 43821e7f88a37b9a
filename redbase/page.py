"""In-memory page frames and their identifiers."""

from __future__ import annotations

import struct
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

PAGE_SIZE = 4096
INVALID_PAGE_ID = -1

_LSN = struct.Struct("<i")


@dataclass(frozen=True)
class PageId:
    """Identifies a page by the descriptor of its file and its page number."""

    fd: int
    page_no: int = INVALID_PAGE_ID


class _ReaderWriterLatch:
    """A latch that admits many readers or one writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._readers = 0
        self._writer = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class Page:
    """A buffer-pool frame holding PAGE_SIZE bytes of one disk page."""

    OFFSET_PAGE_START = 0
    OFFSET_LSN = 0
    OFFSET_PAGE_HDR = 4

    def __init__(self) -> None:
        self.page_id = PageId(fd=-1)
        self.data = bytearray(PAGE_SIZE)
        self.is_dirty = False
        self.pin_count = 0
        self._latch = _ReaderWriterLatch()

    def reset(self) -> None:
        """Zero the page contents."""
        self.data[:] = bytes(PAGE_SIZE)

    def read_latch(self):
        """Context manager holding the page's shared latch."""
        return self._latch.read()

    def write_latch(self):
        """Context manager holding the page's exclusive latch."""
        return self._latch.write()

    @property
    def page_lsn(self) -> int:
        return _LSN.unpack_from(self.data, self.OFFSET_LSN)[0]

    @page_lsn.setter
    def page_lsn(self, lsn: int) -> None:
        _LSN.pack_into(self.data, self.OFFSET_LSN, lsn)

    def __repr__(self) -> str:
        return f"Page(page_id={self.page_id!r}, pin_count={self.pin_count}, is_dirty={self.is_dirty})"