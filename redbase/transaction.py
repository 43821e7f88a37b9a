"""The per-transaction state the managers share."""

from __future__ import annotations

import threading
from collections import deque

from .txn_defs import IsolationLevel, LockDataId, TransactionState, WriteRecord

INVALID_TXN_ID = -1
INVALID_LSN = -1


class Transaction:
    """A transaction: its id, phase, writes, locks and latched pages."""

    def __init__(
        self, txn_id: int, isolation_level: IsolationLevel = IsolationLevel.SERIALIZABLE
    ) -> None:
        self.txn_id = txn_id
        self.isolation_level = isolation_level
        self.state = TransactionState.DEFAULT
        # True while an explicit BEGIN ... COMMIT block is open.
        self.txn_mode = False
        self.start_ts = 0
        self.prev_lsn = INVALID_LSN
        self.thread_id = threading.get_ident()
        self.write_set: deque[WriteRecord] = deque()
        self.lock_set: set[LockDataId] = set()
        self.page_set: deque = deque()
        self.deleted_page_set: deque = deque()

    def append_write_record(self, write_record: WriteRecord) -> None:
        self.write_set.append(write_record)

    def add_into_page_set(self, page) -> None:
        self.page_set.append(page)

    def add_into_deleted_page_set(self, page) -> None:
        self.deleted_page_set.append(page)

    def __repr__(self) -> str:
        return f"Transaction(txn_id={self.txn_id}, state={self.state.name})"