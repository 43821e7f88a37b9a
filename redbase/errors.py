"""Exception hierarchy used throughout the storage and catalog layers."""

from __future__ import annotations

import os


class RedBaseError(Exception):
    """Base class of every error the database raises."""

    def __init__(self, msg: str) -> None:
        self.message = "Error: " + msg
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InternalError(RedBaseError):
    """An invariant of the engine itself was broken."""


class UnixError(RedBaseError):
    """An operating-system call failed."""

    def __init__(self, error_number: int) -> None:
        self.error_number = error_number
        super().__init__(os.strerror(error_number))


class FileNotOpenError(RedBaseError):
    def __init__(self, fd: int) -> None:
        self.fd = fd
        super().__init__(f"Invalid file descriptor: {fd}")


class FileNotClosedError(RedBaseError):
    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"File is opened: {filename}")


class PageFileExistsError(RedBaseError):
    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"File already exists: {filename}")


class PageFileNotFoundError(RedBaseError):
    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"File not found: {filename}")


class RecordNotFoundError(RedBaseError):
    def __init__(self, page_no: int, slot_no: int) -> None:
        self.page_no = page_no
        self.slot_no = slot_no
        super().__init__(f"Record not found: ({page_no},{slot_no})")


class InvalidRecordSizeError(RedBaseError):
    def __init__(self, record_size: int) -> None:
        self.record_size = record_size
        super().__init__(f"Invalid record size: {record_size}")


class InvalidColLengthError(RedBaseError):
    def __init__(self, col_len: int) -> None:
        self.col_len = col_len
        super().__init__(f"Invalid column length: {col_len}")


class IndexEntryNotFoundError(RedBaseError):
    def __init__(self) -> None:
        super().__init__("Index entry not found")


class DatabaseNotFoundError(RedBaseError):
    def __init__(self, db_name: str) -> None:
        self.db_name = db_name
        super().__init__(f"Database not found: {db_name}")


class DatabaseExistsError(RedBaseError):
    def __init__(self, db_name: str) -> None:
        self.db_name = db_name
        super().__init__(f"Database already exists: {db_name}")


class TableNotFoundError(RedBaseError):
    def __init__(self, tab_name: str) -> None:
        self.tab_name = tab_name
        super().__init__(f"Table not found: {tab_name}")


class TableExistsError(RedBaseError):
    def __init__(self, tab_name: str) -> None:
        self.tab_name = tab_name
        super().__init__(f"Table already exists: {tab_name}")


class ColumnNotFoundError(RedBaseError):
    def __init__(self, col_name: str) -> None:
        self.col_name = col_name
        super().__init__(f"Column not found: {col_name}")


class IndexNotFoundError(RedBaseError):
    def __init__(self, tab_name: str, col_name: str) -> None:
        self.tab_name = tab_name
        self.col_name = col_name
        super().__init__(f"Index not found: {tab_name}.{col_name}")


class IndexExistsError(RedBaseError):
    def __init__(self, tab_name: str, col_name: str) -> None:
        self.tab_name = tab_name
        self.col_name = col_name
        super().__init__(f"Index already exists: {tab_name}.{col_name}")


class InvalidValueCountError(RedBaseError):
    def __init__(self) -> None:
        super().__init__("Invalid value count")


class StringOverflowError(RedBaseError):
    def __init__(self) -> None:
        super().__init__("String is too long")


class IncompatibleTypeError(RedBaseError):
    def __init__(self, lhs: str, rhs: str) -> None:
        self.lhs = lhs
        self.rhs = rhs
        super().__init__(f"Incompatible type error: lhs {lhs}, rhs {rhs}")


class AmbiguousColumnError(RedBaseError):
    def __init__(self, col_name: str) -> None:
        self.col_name = col_name
        super().__init__(f"Ambiguous column: {col_name}")


class PageNotExistError(RedBaseError):
    def __init__(self, table_name: str, page_no: int) -> None:
        self.table_name = table_name
        self.page_no = page_no
        super().__init__(f"Page {page_no} in table {table_name}not exits")