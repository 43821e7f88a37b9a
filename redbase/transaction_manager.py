"""Starting, committing and aborting transactions."""

from __future__ import annotations

import itertools
import threading
from enum import Enum

from .errors import InternalError
from .lock_manager import LockManager
from .transaction import INVALID_TXN_ID, Transaction
from .txn_defs import TransactionState, WType


class ConcurrencyMode(Enum):
    TWO_PHASE_LOCKING = 0
    BASIC_TO = 1


class TransactionManager:
    """Hands out transactions and finishes them, releasing their locks.

    Aborting undoes the transaction's writes through ``sm_manager``, which
    must provide ``rollback_insert(tab_name, rid)``,
    ``rollback_delete(tab_name, record)`` and
    ``rollback_update(tab_name, rid, record)``.
    """

    def __init__(
        self,
        lock_manager: LockManager,
        sm_manager=None,
        concurrency_mode: ConcurrencyMode = ConcurrencyMode.TWO_PHASE_LOCKING,
    ) -> None:
        self.lock_manager = lock_manager
        self.sm_manager = sm_manager
        self.concurrency_mode = concurrency_mode
        self.txn_map: dict[int, Transaction] = {}
        self._txn_ids = itertools.count()
        self._timestamps = itertools.count()
        self._next_txn_id = 0
        self._lock = threading.Lock()
        self._open = threading.Event()
        self._open.set()

    @property
    def next_txn_id(self) -> int:
        return self._next_txn_id

    def begin(self, txn: Transaction | None, log_manager=None) -> Transaction:
        """Register txn, creating a new transaction when txn is None."""
        self._open.wait()
        with self._lock:
            if txn is None:
                txn = Transaction(next(self._txn_ids))
                self._next_txn_id = txn.txn_id + 1
            txn.start_ts = next(self._timestamps)
            self.txn_map[txn.txn_id] = txn
        return txn

    def commit(self, txn: Transaction, log_manager=None) -> None:
        """Keep txn's writes, release its locks and mark it committed."""
        txn.write_set.clear()
        self._release(txn)
        txn.state = TransactionState.COMMITTED

    def abort(self, txn: Transaction, log_manager=None) -> None:
        """Undo txn's writes newest first, release its locks, mark it aborted."""
        if txn.write_set and self.sm_manager is None:
            raise InternalError("No system manager to roll back writes")
        while txn.write_set:
            record = txn.write_set.pop()
            if record.wtype is WType.INSERT_TUPLE:
                self.sm_manager.rollback_insert(record.tab_name, record.rid)
            elif record.wtype is WType.DELETE_TUPLE:
                self.sm_manager.rollback_delete(record.tab_name, record.record)
            else:
                self.sm_manager.rollback_update(record.tab_name, record.rid, record.record)
        self._release(txn)
        txn.state = TransactionState.ABORTED

    def _release(self, txn: Transaction) -> None:
        for lock_id in list(txn.lock_set):
            self.lock_manager.unlock(txn, lock_id)
        txn.lock_set.clear()
        txn.page_set.clear()
        txn.deleted_page_set.clear()

    def get_transaction(self, txn_id: int) -> Transaction | None:
        """Return the transaction with txn_id, or None for the invalid id."""
        if txn_id == INVALID_TXN_ID:
            return None
        txn = self.txn_map.get(txn_id)
        if txn is None:
            raise InternalError(f"Transaction {txn_id} not found")
        if txn.thread_id != threading.get_ident():
            raise InternalError(f"Transaction {txn_id} belongs to another thread")
        return txn

    def block_all_transactions(self) -> None:
        """Hold back new transactions until resume_all_transactions."""
        self._open.clear()

    def resume_all_transactions(self) -> None:
        self._open.set()