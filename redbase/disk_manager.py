"""File and page I/O for the database's on-disk files."""

from __future__ import annotations

import os
import shutil
import threading

from .errors import (
    FileNotClosedError,
    FileNotOpenError,
    InternalError,
    PageFileExistsError,
    PageFileNotFoundError,
    UnixError,
)
from .page import PAGE_SIZE

LOG_FILE_NAME = "db.log"

_BINARY = getattr(os, "O_BINARY", 0)


def _unix_error(exc: OSError) -> UnixError:
    return UnixError(exc.errno or 0)


class DiskManager:
    """Creates, opens and removes files and reads and writes their pages."""

    MAX_FD = 8192

    def __init__(self, log_file_name: str = LOG_FILE_NAME) -> None:
        self.log_file_name = log_file_name
        self.log_fd: int | None = None
        self._path2fd: dict[str, int] = {}
        self._fd2path: dict[int, str] = {}
        self._fd2pageno: dict[int, int] = {}
        self._lock = threading.Lock()

    # Page operations

    def write_page(self, fd: int, page_no: int, data: bytes) -> None:
        """Write data at the start of page page_no of the open file fd."""
        try:
            os.lseek(fd, page_no * PAGE_SIZE, os.SEEK_SET)
            written = os.write(fd, bytes(data))
        except OSError as exc:
            raise _unix_error(exc) from exc
        if written != len(data):
            raise InternalError("DiskManager::write_page Error")

    def read_page(self, fd: int, page_no: int, num_bytes: int) -> bytes:
        """Read num_bytes from the start of page page_no of the open file fd."""
        try:
            os.lseek(fd, page_no * PAGE_SIZE, os.SEEK_SET)
            data = os.read(fd, num_bytes)
        except OSError as exc:
            raise _unix_error(exc) from exc
        if len(data) != num_bytes:
            raise InternalError("DiskManager::read_page Error")
        return data

    def allocate_page(self, fd: int) -> int:
        """Hand out the next page number of file fd."""
        with self._lock:
            page_no = self._fd2pageno.get(fd, 0)
            self._fd2pageno[fd] = page_no + 1
        return page_no

    def deallocate_page(self, page_no: int) -> None:
        """Release a page number; pages are not reused, so nothing is done."""

    def set_next_page_no(self, fd: int, page_no: int) -> None:
        with self._lock:
            self._fd2pageno[fd] = page_no

    def get_next_page_no(self, fd: int) -> int:
        with self._lock:
            return self._fd2pageno.get(fd, 0)

    # Directory operations

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def create_dir(self, path: str) -> None:
        try:
            os.mkdir(path)
        except OSError as exc:
            raise _unix_error(exc) from exc

    def destroy_dir(self, path: str) -> None:
        try:
            shutil.rmtree(path)
        except OSError as exc:
            raise _unix_error(exc) from exc

    # File operations

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def create_file(self, path: str) -> None:
        if self.is_file(path):
            raise PageFileExistsError(path)
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_RDWR | _BINARY, 0o600)
        except FileExistsError as exc:
            raise PageFileExistsError(path) from exc
        except OSError as exc:
            raise _unix_error(exc) from exc
        os.close(fd)

    def destroy_file(self, path: str) -> None:
        if not self.is_file(path):
            raise PageFileNotFoundError(path)
        if path in self._path2fd:
            raise FileNotClosedError(path)
        try:
            os.unlink(path)
        except OSError as exc:
            raise _unix_error(exc) from exc

    def open_file(self, path: str) -> int:
        if not self.is_file(path):
            raise PageFileNotFoundError(path)
        if path in self._path2fd:
            raise FileNotClosedError(path)
        try:
            fd = os.open(path, os.O_RDWR | _BINARY)
        except OSError as exc:
            raise _unix_error(exc) from exc
        self._path2fd[path] = fd
        self._fd2path[fd] = path
        return fd

    def close_file(self, fd: int) -> None:
        if fd not in self._fd2path:
            raise FileNotOpenError(fd)
        try:
            os.close(fd)
        except OSError as exc:
            raise _unix_error(exc) from exc
        path = self._fd2path.pop(fd)
        del self._path2fd[path]
        if fd == self.log_fd:
            self.log_fd = None

    def get_file_size(self, path: str) -> int:
        """Return the size of a file in bytes, or -1 if it cannot be read."""
        try:
            return os.stat(path).st_size
        except OSError:
            return -1

    def get_file_name(self, fd: int) -> str:
        try:
            return self._fd2path[fd]
        except KeyError:
            raise FileNotOpenError(fd) from None

    def get_file_fd(self, path: str) -> int:
        """Return the descriptor of path, opening the file if needed."""
        fd = self._path2fd.get(path)
        return self.open_file(path) if fd is None else fd

    # Log operations

    def _ensure_log_open(self) -> int:
        if self.log_fd is None:
            self.log_fd = self.open_file(self.log_file_name)
        return self.log_fd

    def read_log(self, size: int, offset: int, prev_log_end: int) -> bytes:
        """Read up to size bytes of the log at offset past prev_log_end.

        Returns an empty bytes object when that position is at or past the end.
        """
        log_fd = self._ensure_log_open()
        offset += prev_log_end
        file_size = self.get_file_size(self.log_file_name)
        if offset >= file_size:
            return b""
        size = min(size, file_size - offset)
        try:
            os.lseek(log_fd, offset, os.SEEK_SET)
            data = os.read(log_fd, size)
        except OSError as exc:
            raise _unix_error(exc) from exc
        if len(data) != size:
            raise InternalError("DiskManager::read_log Error")
        return data

    def write_log(self, data: bytes) -> None:
        """Append data to the end of the log file."""
        log_fd = self._ensure_log_open()
        try:
            os.lseek(log_fd, 0, os.SEEK_END)
            written = os.write(log_fd, bytes(data))
        except OSError as exc:
            raise _unix_error(exc) from exc
        if written != len(data):
            raise InternalError("DiskManager::write_log Error")