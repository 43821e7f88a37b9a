"""A fixed-size pool of page frames cached over the disk manager."""

from __future__ import annotations

import threading
from collections import OrderedDict, deque

from .disk_manager import DiskManager
from .page import INVALID_PAGE_ID, PAGE_SIZE, Page, PageId

_FREE_PAGE_ID = PageId(fd=-1)


class _LRUReplacer:
    """Tracks unpinned frames and picks the least recently unpinned one."""

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._frames: OrderedDict[int, None] = OrderedDict()

    def victim(self) -> int | None:
        if not self._frames:
            return None
        frame_id, _ = self._frames.popitem(last=False)
        return frame_id

    def pin(self, frame_id: int) -> None:
        self._frames.pop(frame_id, None)

    def unpin(self, frame_id: int) -> None:
        if frame_id in self._frames or len(self._frames) >= self._capacity:
            return
        self._frames[frame_id] = None

    def __len__(self) -> int:
        return len(self._frames)


class BufferPoolManager:
    """Caches disk pages in a fixed number of frames with LRU replacement."""

    def __init__(self, pool_size: int, disk_manager: DiskManager) -> None:
        self.pool_size = pool_size
        self.disk_manager = disk_manager
        self._pages = [Page() for _ in range(pool_size)]
        self._page_table: dict[PageId, int] = {}
        self._free_list: deque[int] = deque(range(pool_size))
        self._replacer = _LRUReplacer(pool_size)
        self._latch = threading.Lock()

    def _find_victim(self) -> int | None:
        if self._free_list:
            return self._free_list.popleft()
        return self._replacer.victim()

    def _update_page(self, page: Page, new_page_id: PageId, frame_id: int) -> None:
        if page.is_dirty:
            old = page.page_id
            self.disk_manager.write_page(old.fd, old.page_no, page.data)
            page.is_dirty = False
        if self._page_table.get(page.page_id) == frame_id:
            del self._page_table[page.page_id]
        if new_page_id.page_no != INVALID_PAGE_ID:
            self._page_table[new_page_id] = frame_id
        page.reset()
        page.page_id = new_page_id

    def _release_frame(self, page: Page, frame_id: int) -> None:
        if self._page_table.get(page.page_id) == frame_id:
            del self._page_table[page.page_id]
        page.page_id = _FREE_PAGE_ID
        page.reset()
        page.is_dirty = False
        page.pin_count = 0
        self._replacer.pin(frame_id)
        self._free_list.append(frame_id)

    def fetch_page(self, page_id: PageId) -> Page | None:
        """Return the pinned page, reading it from disk if needed.

        Returns None when every frame is pinned.
        """
        with self._latch:
            frame_id = self._page_table.get(page_id)
            if frame_id is not None:
                page = self._pages[frame_id]
                page.pin_count += 1
                self._replacer.pin(frame_id)
                return page
            frame_id = self._find_victim()
            if frame_id is None:
                return None
            page = self._pages[frame_id]
            self._update_page(page, page_id, frame_id)
            try:
                page.data[:] = self.disk_manager.read_page(page_id.fd, page_id.page_no, PAGE_SIZE)
            except Exception:
                self._release_frame(page, frame_id)
                raise
            page.pin_count = 1
            self._replacer.pin(frame_id)
            return page

    def unpin_page(self, page_id: PageId, is_dirty: bool) -> bool:
        """Drop one pin; False if the page is absent or was not pinned."""
        with self._latch:
            frame_id = self._page_table.get(page_id)
            if frame_id is None:
                return False
            page = self._pages[frame_id]
            if page.pin_count <= 0:
                return False
            page.pin_count -= 1
            if page.pin_count == 0:
                self._replacer.unpin(frame_id)
            if is_dirty:
                page.is_dirty = True
            return True

    def flush_page(self, page_id: PageId) -> bool:
        """Write the page to disk regardless of pins; False if not cached."""
        with self._latch:
            frame_id = self._page_table.get(page_id)
            if frame_id is None:
                return False
            page = self._pages[frame_id]
            self.disk_manager.write_page(page_id.fd, page_id.page_no, page.data)
            page.is_dirty = False
            return True

    def new_page(self, fd: int) -> Page | None:
        """Allocate a fresh, zeroed, pinned page in file fd.

        The new page's id is available as ``page.page_id``. Returns None
        when every frame is pinned.
        """
        with self._latch:
            frame_id = self._find_victim()
            if frame_id is None:
                return None
            page_no = self.disk_manager.allocate_page(fd)
            page = self._pages[frame_id]
            self._update_page(page, PageId(fd, page_no), frame_id)
            page.pin_count = 1
            self._replacer.pin(frame_id)
            return page

    def delete_page(self, page_id: PageId) -> bool:
        """Remove a page from the pool; False only if it is still pinned."""
        with self._latch:
            self.disk_manager.deallocate_page(page_id.page_no)
            frame_id = self._page_table.get(page_id)
            if frame_id is None:
                return True
            page = self._pages[frame_id]
            if page.pin_count > 0:
                return False
            self._release_frame(page, frame_id)
            return True

    def flush_all_pages(self, fd: int) -> None:
        """Write every cached page of file fd to disk."""
        with self._latch:
            for page in self._pages:
                pid = page.page_id
                if pid.fd == fd and pid.page_no != INVALID_PAGE_ID:
                    self.disk_manager.write_page(pid.fd, pid.page_no, page.data)
                    page.is_dirty = False