# redbase

This package holds the lower layers of a small relational database engine.

- **Disk manager** (`redbase.disk_manager.DiskManager`). It creates, opens, closes and removes page files, and it creates and removes directories. It reads and writes pages of `PAGE_SIZE` (4096) bytes and hands out page numbers for each file. It also appends to a log file and reads it back. The log file is `db.log` unless another name is given.
- **Pages** (`redbase.page`). `PageId(fd, page_no)` names a page. A `Page` is a frame with a `data` bytearray, `is_dirty` and `pin_count` attributes, and a `page_lsn` property. Its `read_latch()` and `write_latch()` context managers take a shared or an exclusive latch.
- **Buffer pool** (`redbase.buffer_pool_manager.BufferPoolManager`). It keeps a fixed number of frames in memory and evicts the least recently unpinned one when it needs a frame. A dirty page is written back to disk when it is evicted. The pool has `fetch_page`, `new_page`, `unpin_page`, `flush_page`, `flush_all_pages` and `delete_page`.
- **Catalog** (`redbase.catalog`). `DbMeta`, `TabMeta` and `ColMeta` describe a database, its tables and their columns. `DbMeta.dumps()` writes the catalog as whitespace-separated text and `DbMeta.loads()` reads it back. Lookups that fail raise `TableNotFoundError` or `ColumnNotFoundError`.
- **Transactions** (`redbase.transaction`, `redbase.transaction_manager`, `redbase.lock_manager`, `redbase.txn_defs`):
  - `Transaction` objects.
  - `TransactionManager.begin` / `commit` / `abort`.
  - A `LockManager` that gives out shared, exclusive, intention-shared and intention-exclusive locks on tables, and shared and exclusive locks on records, under two-phase locking.
- **Basic types** (`redbase.defs`):
  - `Rid(page_no, slot_no)`.
  - The `ColType` enum and `coltype_to_str`.
  - The abstract `RecScan` cursor. A `RecScan` can be iterated to yield `Rid`s.
- **Output helper** (`redbase.record_printer.RecordPrinter`). It returns the strings for fixed-width result tables: borders, rows and the closing "Total record(s): N" line. Values longer than 16 characters are cut short and end in `...`.

The package needs Python 3.10 or later and has no runtime dependencies.

## Installing

```
pip install .
pip install ".[test]"   # with pytest, to run the tests
```

## A short tour

```python
from redbase.disk_manager import DiskManager
from redbase.buffer_pool_manager import BufferPoolManager
from redbase.page import PageId

disk = DiskManager()
disk.create_file("example_table")
fd = disk.open_file("example_table")

pool = BufferPoolManager(10, disk)
page = pool.new_page(fd)            # a pinned, zeroed page, or None if every frame is pinned
page.data[:5] = b"Hello"
pool.unpin_page(page.page_id, True)

again = pool.fetch_page(PageId(fd, 0))
assert bytes(again.data[:5]) == b"Hello"
pool.unpin_page(again.page_id, False)

pool.flush_all_pages(fd)
disk.close_file(fd)
```

Catalog metadata can be written to text and read back:

```python
from redbase.catalog import ColMeta, DbMeta, TabMeta
from redbase.defs import ColType

tab = TabMeta("t1", [ColMeta("t1", "id", ColType.TYPE_INT, 4, 0)])
db_meta = DbMeta("shop", {"t1": tab})
restored = DbMeta.loads(db_meta.dumps())
assert restored == db_meta
```

Locks are taken on behalf of a transaction:

```python
from redbase.lock_manager import LockManager
from redbase.transaction_manager import TransactionManager
from redbase.defs import Rid

locks = LockManager()
txns = TransactionManager(locks, None)
txn = txns.begin(None, None)
locks.lock_ix_on_table(txn, 3)
locks.lock_exclusive_on_record(txn, Rid(0, 1), 3)
txns.commit(txn, None)              # releases the locks; txn.state is COMMITTED
```

A lock request blocks until it is compatible with the locks other transactions hold.

Some requests make the transaction abort instead. In each case the transaction is marked `ABORTED` and `TransactionAbortError` is raised:

- a request made in the shrinking phase;
- a second upgrade that would compete with one already waiting.

`TransactionManager.abort` undoes the transaction's recorded writes, newest first. For that it calls `rollback_insert`, `rollback_delete` and `rollback_update` on the `sm_manager` object passed to it. If there are writes to undo and no such object was given, it raises `InternalError`.

## What this package does not do

These layers are not a complete database. The package has:

- no SQL parser or interpreter, and no command-line shell or server;
- no record-file or index layer;
- no code that creates, opens or drops a database directory or its tables (the catalog classes only hold metadata and turn it into text and back);
- no recovery from the log.

## Errors

Every failure the engine reports is raised as a subclass of `redbase.errors.RedBaseError`. Examples are `PageFileNotFoundError`, `PageFileExistsError`, `FileNotClosedError`, `FileNotOpenError`, `TableNotFoundError` and `IndexExistsError`. Their messages begin with `Error: `. Failed operating-system calls raise `UnixError`.

## Running the tests

```
pytest
```