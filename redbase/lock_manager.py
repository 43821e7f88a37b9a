"""Two-phase locking over tables and records with multiple granularity."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum

from .defs import Rid
from .transaction import Transaction
from .txn_defs import AbortReason, LockDataId, TransactionAbortError, TransactionState


class LockMode(Enum):
    SHARED = 0
    EXCLUSIVE = 1
    INTENTION_SHARED = 2
    INTENTION_EXCLUSIVE = 3
    S_IX = 4


class GroupLockMode(Enum):
    """The combined mode of every lock granted on one object."""

    NON_LOCK = 0
    IS = 1
    IX = 2
    S = 3
    X = 4
    SIX = 5


_GROUP_OF = {
    LockMode.SHARED: GroupLockMode.S,
    LockMode.EXCLUSIVE: GroupLockMode.X,
    LockMode.INTENTION_SHARED: GroupLockMode.IS,
    LockMode.INTENTION_EXCLUSIVE: GroupLockMode.IX,
    LockMode.S_IX: GroupLockMode.SIX,
}
_MODE_OF = {group: mode for mode, group in _GROUP_OF.items()}

# Modes a request may take given the group mode already held by others.
_COMPATIBLE = {
    GroupLockMode.NON_LOCK: frozenset(_MODE_OF),
    GroupLockMode.IS: frozenset(
        {GroupLockMode.IS, GroupLockMode.IX, GroupLockMode.S, GroupLockMode.SIX}
    ),
    GroupLockMode.IX: frozenset({GroupLockMode.IS, GroupLockMode.IX}),
    GroupLockMode.S: frozenset({GroupLockMode.IS, GroupLockMode.S}),
    GroupLockMode.SIX: frozenset({GroupLockMode.IS}),
    GroupLockMode.X: frozenset(),
}

_RIGHTS = {
    GroupLockMode.NON_LOCK: frozenset(),
    GroupLockMode.IS: frozenset({GroupLockMode.IS}),
    GroupLockMode.IX: frozenset({GroupLockMode.IS, GroupLockMode.IX}),
    GroupLockMode.S: frozenset({GroupLockMode.IS, GroupLockMode.S}),
    GroupLockMode.SIX: frozenset(
        {GroupLockMode.IS, GroupLockMode.IX, GroupLockMode.S, GroupLockMode.SIX}
    ),
    GroupLockMode.X: frozenset(_MODE_OF),
}
_BY_STRENGTH = (
    GroupLockMode.NON_LOCK,
    GroupLockMode.IS,
    GroupLockMode.IX,
    GroupLockMode.S,
    GroupLockMode.SIX,
    GroupLockMode.X,
)


def _combine(a: GroupLockMode, b: GroupLockMode) -> GroupLockMode:
    """Return the weakest mode that grants everything a and b grant."""
    needed = _RIGHTS[a] | _RIGHTS[b]
    return next(mode for mode in _BY_STRENGTH if _RIGHTS[mode] >= needed)


@dataclass
class _LockRequest:
    txn_id: int
    mode: GroupLockMode
    granted: bool = False


class _LockRequestQueue:
    def __init__(self, latch: threading.Lock) -> None:
        self.requests: list[_LockRequest] = []
        self.cond = threading.Condition(latch)
        self.upgrading = False

    def find(self, txn_id: int) -> _LockRequest | None:
        return next((r for r in self.requests if r.txn_id == txn_id), None)

    def group_mode(self, excluding: int | None = None) -> GroupLockMode:
        mode = GroupLockMode.NON_LOCK
        for request in self.requests:
            if request.granted and request.txn_id != excluding:
                mode = _combine(mode, request.mode)
        return mode

    def grantable(self, txn_id: int, mode: GroupLockMode) -> bool:
        return mode in _COMPATIBLE[self.group_mode(excluding=txn_id)]


class LockManager:
    """Grants table and record locks, blocking until they are compatible."""

    def __init__(self) -> None:
        self._latch = threading.Lock()
        self._lock_table: dict[LockDataId, _LockRequestQueue] = {}

    def lock_shared_on_record(self, txn: Transaction, rid: Rid, tab_fd: int) -> bool:
        return self._acquire(txn, LockDataId.for_record(tab_fd, rid), LockMode.SHARED)

    def lock_exclusive_on_record(self, txn: Transaction, rid: Rid, tab_fd: int) -> bool:
        return self._acquire(txn, LockDataId.for_record(tab_fd, rid), LockMode.EXCLUSIVE)

    def lock_shared_on_table(self, txn: Transaction, tab_fd: int) -> bool:
        return self._acquire(txn, LockDataId.for_table(tab_fd), LockMode.SHARED)

    def lock_exclusive_on_table(self, txn: Transaction, tab_fd: int) -> bool:
        return self._acquire(txn, LockDataId.for_table(tab_fd), LockMode.EXCLUSIVE)

    def lock_is_on_table(self, txn: Transaction, tab_fd: int) -> bool:
        return self._acquire(txn, LockDataId.for_table(tab_fd), LockMode.INTENTION_SHARED)

    def lock_ix_on_table(self, txn: Transaction, tab_fd: int) -> bool:
        return self._acquire(txn, LockDataId.for_table(tab_fd), LockMode.INTENTION_EXCLUSIVE)

    def unlock(self, txn: Transaction, lock_data_id: LockDataId) -> bool:
        """Release txn's lock on lock_data_id; False if it held none."""
        with self._latch:
            queue = self._lock_table.get(lock_data_id)
            request = queue.find(txn.txn_id) if queue is not None else None
            if request is None:
                return False
            queue.requests.remove(request)
            if not queue.requests:
                del self._lock_table[lock_data_id]
            txn.lock_set.discard(lock_data_id)
            if txn.state is TransactionState.GROWING:
                txn.state = TransactionState.SHRINKING
            queue.cond.notify_all()
            return True

    def _acquire(self, txn: Transaction, data_id: LockDataId, mode: LockMode) -> bool:
        requested = _GROUP_OF[mode]
        with self._latch:
            if txn.state in (TransactionState.COMMITTED, TransactionState.ABORTED):
                return False
            if txn.state is TransactionState.SHRINKING:
                txn.state = TransactionState.ABORTED
                raise TransactionAbortError(txn.txn_id, AbortReason.LOCK_ON_SHRINKING)
            queue = self._lock_table.get(data_id)
            if queue is None:
                queue = self._lock_table[data_id] = _LockRequestQueue(self._latch)
            own = queue.find(txn.txn_id)
            if own is not None:
                target = _combine(own.mode, requested)
                if target is not own.mode:
                    self._upgrade(txn, queue, own, target)
            else:
                request = _LockRequest(txn.txn_id, requested)
                queue.requests.append(request)
                while not queue.grantable(txn.txn_id, requested):
                    queue.cond.wait()
                request.granted = True
            txn.state = TransactionState.GROWING
            txn.lock_set.add(data_id)
            return True

    @staticmethod
    def _upgrade(
        txn: Transaction, queue: _LockRequestQueue, own: _LockRequest, target: GroupLockMode
    ) -> None:
        if queue.upgrading:
            txn.state = TransactionState.ABORTED
            raise TransactionAbortError(txn.txn_id, AbortReason.UPGRADE_CONFLICT)
        queue.upgrading = True
        try:
            while not queue.grantable(txn.txn_id, target):
                queue.cond.wait()
        finally:
            queue.upgrading = False
        own.mode = target