import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from redbase.buffer_pool_manager import BufferPoolManager
from redbase.disk_manager import DiskManager
from redbase.page import PAGE_SIZE, PageId

MAX_FILES = 32
MAX_PAGES = 128


def _put_cstr(page, text):
    raw = text.encode() + b"\x00"
    page.data[: len(raw)] = raw


def _get_cstr(page):
    data = bytes(page.data)
    return data[: data.index(b"\x00")].decode()


@pytest.fixture
def disk_manager():
    return DiskManager()


def _open(disk_manager, tmp_path, name):
    path = str(tmp_path / name)
    disk_manager.create_file(path)
    return disk_manager.open_file(path)


def test_simple(disk_manager, tmp_path):
    buffer_pool_size = 10
    bpm = BufferPoolManager(buffer_pool_size, disk_manager)
    fd = _open(disk_manager, tmp_path, "simple_test")

    page0 = bpm.new_page(fd)
    assert page0 is not None
    assert page0.page_id.page_no == 0

    _put_cstr(page0, "Hello")
    assert _get_cstr(page0) == "Hello"

    for _ in range(1, buffer_pool_size):
        assert bpm.new_page(fd) is not None

    for _ in range(buffer_pool_size, buffer_pool_size * 2):
        assert bpm.new_page(fd) is None

    for i in range(5):
        assert bpm.unpin_page(PageId(fd, i), True) is True
    for _ in range(4):
        assert bpm.new_page(fd) is not None

    page0 = bpm.fetch_page(PageId(fd, 0))
    assert _get_cstr(page0) == "Hello"
    assert bpm.unpin_page(PageId(fd, 0), True) is True
    assert bpm.new_page(fd) is not None
    assert bpm.fetch_page(PageId(fd, 0)) is None

    bpm.flush_all_pages(fd)
    disk_manager.close_file(fd)


def test_multiple_files(disk_manager, tmp_path):
    rng = random.Random(1234)
    bpm = BufferPoolManager(MAX_FILES * MAX_PAGES // 2, disk_manager)

    fds = [_open(disk_manager, tmp_path, f"multiple_files_test_{i}") for i in range(MAX_FILES)]
    assert len(set(fds)) == MAX_FILES
    for file_idx in range(MAX_FILES):
        disk_manager.set_next_page_no(fds[file_idx], 0)
    mock = {fd: [b""] * MAX_PAGES for fd in fds}

    for file_idx in range(MAX_FILES):
        fd = fds[file_idx]
        for i in range(MAX_PAGES):
            buf = rng.randbytes(PAGE_SIZE)
            page = bpm.new_page(fd)
            assert page.page_id.page_no == i
            page.data[:] = buf
            mock[fd][i] = buf
            assert bytes(page.data) == mock[fd][i]
            assert bpm.unpin_page(page.page_id, True) is True

    for file_idx in range(MAX_FILES):
        fd = fds[file_idx]
        bpm.flush_all_pages(fd)
        for page_no in range(MAX_PAGES):
            buf = disk_manager.read_page(fd, page_no, PAGE_SIZE)
            assert buf == mock[fd][page_no]
            page = bpm.fetch_page(PageId(fd, page_no))
            assert bytes(page.data) == buf
            assert bpm.unpin_page(page.page_id, False) is True

    for _ in range(10000):
        fd = rng.choice(fds)
        page_no = rng.randrange(MAX_PAGES)
        page = bpm.fetch_page(PageId(fd, page_no))
        assert bytes(page.data) == mock[fd][page_no]

        buf = rng.randbytes(PAGE_SIZE)
        page.data[:] = buf
        mock[fd][page_no] = buf

        if rng.randrange(10) == 0:
            assert bpm.flush_page(page.page_id) is True
            assert disk_manager.read_page(fd, page_no, PAGE_SIZE) == mock[fd][page_no]
        assert bytes(page.data) == mock[fd][page_no]
        assert bpm.unpin_page(page.page_id, True) is True

    for file_idx in range(MAX_FILES):
        disk_manager.close_file(fds[file_idx])


def test_unpin_missing_page_returns_false(disk_manager, tmp_path):
    bpm = BufferPoolManager(4, disk_manager)
    fd = _open(disk_manager, tmp_path, "missing")
    assert bpm.unpin_page(PageId(fd, 7), True) is False
    assert bpm.flush_page(PageId(fd, 7)) is False
    assert bpm.delete_page(PageId(fd, 7)) is True
    disk_manager.close_file(fd)


def test_unpin_twice_returns_false(disk_manager, tmp_path):
    bpm = BufferPoolManager(4, disk_manager)
    fd = _open(disk_manager, tmp_path, "twice")
    page = bpm.new_page(fd)
    assert bpm.unpin_page(page.page_id, False) is True
    assert bpm.unpin_page(page.page_id, False) is False
    disk_manager.close_file(fd)


def test_delete_pinned_page_fails(disk_manager, tmp_path):
    bpm = BufferPoolManager(2, disk_manager)
    fd = _open(disk_manager, tmp_path, "pinned")
    page = bpm.new_page(fd)
    pid = page.page_id
    assert bpm.delete_page(pid) is False
    assert bpm.unpin_page(pid, False) is True
    assert bpm.delete_page(pid) is True
    assert bpm.unpin_page(pid, False) is False
    disk_manager.close_file(fd)


def test_fetch_pins_cached_page(disk_manager, tmp_path):
    bpm = BufferPoolManager(1, disk_manager)
    fd = _open(disk_manager, tmp_path, "cached")
    page = bpm.new_page(fd)
    again = bpm.fetch_page(page.page_id)
    assert again is page
    assert page.pin_count == 2
    assert bpm.new_page(fd) is None
    disk_manager.close_file(fd)


def test_flush_page_writes_data_and_clears_dirty(disk_manager, tmp_path):
    bpm = BufferPoolManager(2, disk_manager)
    fd = _open(disk_manager, tmp_path, "flush")
    page = bpm.new_page(fd)
    _put_cstr(page, "data")
    assert bpm.unpin_page(page.page_id, True) is True
    assert page.is_dirty is True
    assert bpm.flush_page(page.page_id) is True
    assert page.is_dirty is False
    on_disk = disk_manager.read_page(fd, page.page_id.page_no, PAGE_SIZE)
    assert on_disk == bytes(page.data)
    disk_manager.close_file(fd)