"""Shared definitions for transactions: states, write records and lock ids."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

from .defs import Rid

_MASK64 = (1 << 64) - 1
_SIGN64 = 1 << 63


class TransactionState(Enum):
    DEFAULT = 0
    GROWING = 1
    SHRINKING = 2
    COMMITTED = 3
    ABORTED = 4


class IsolationLevel(Enum):
    READ_UNCOMMITTED = 0
    REPEATABLE_READ = 1
    READ_COMMITTED = 2
    SERIALIZABLE = 3


class WType(IntEnum):
    INSERT_TUPLE = 0
    DELETE_TUPLE = 1
    UPDATE_TUPLE = 2


@dataclass
class WriteRecord:
    """One write made by a transaction, kept so that it can be undone.

    Inserts carry the rid, deletes the old record, updates both.
    """

    wtype: WType
    tab_name: str
    rid: Rid | None = None
    record: object = None


class LockDataType(IntEnum):
    TABLE = 0
    RECORD = 1


_NO_RID = Rid(-1, -1)


@dataclass(frozen=True)
class LockDataId:
    """Names a lockable object: a whole table or one record in it."""

    fd: int
    data_type: LockDataType
    rid: Rid = _NO_RID

    def __post_init__(self) -> None:
        if self.data_type is LockDataType.TABLE and self.rid != _NO_RID:
            raise ValueError("a table lock id carries no record id")

    @classmethod
    def for_table(cls, fd: int) -> LockDataId:
        return cls(fd, LockDataType.TABLE)

    @classmethod
    def for_record(cls, fd: int, rid: Rid) -> LockDataId:
        return cls(fd, LockDataType.RECORD, rid)

    def key(self) -> int:
        """Pack the id into a signed 64-bit integer."""
        if self.data_type is LockDataType.TABLE:
            return self.fd
        raw = (
            (int(self.data_type) << 63)
            | (self.fd << 31)
            | (self.rid.page_no << 16)
            | self.rid.slot_no
        ) & _MASK64
        return raw - (1 << 64) if raw & _SIGN64 else raw


class AbortReason(Enum):
    LOCK_ON_SHRINKING = 0
    UPGRADE_CONFLICT = 1
    DEADLOCK_PREVENTION = 2


class TransactionAbortError(Exception):
    """Raised when the lock manager forces a transaction to abort."""

    def __init__(self, txn_id: int, abort_reason: AbortReason) -> None:
        self.txn_id = txn_id
        self.abort_reason = abort_reason
        super().__init__(self.info)

    @property
    def info(self) -> str:
        if self.abort_reason is AbortReason.LOCK_ON_SHRINKING:
            return (
                f"Transaction {self.txn_id} aborted because it cannot request "
                "locks on SHRINKING phase\n"
            )
        if self.abort_reason is AbortReason.UPGRADE_CONFLICT:
            return (
                f"Transaction {self.txn_id} aborted because another transaction "
                "is waiting for upgrading\n"
            )
        if self.abort_reason is AbortReason.DEADLOCK_PREVENTION:
            return f"Transaction {self.txn_id} aborted for deadlock prevention\n"
        return "Transaction aborted\n"