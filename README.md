# meshsync

meshsync keeps the ghost items of a partitioned mesh in step with the items
that own them. It also provides a Cartesian numbering for structured grids.
It is pure Python and has no dependencies.

## Modules

- `meshsync.numbering.CartesianNumbering` maps `(i, j, k)` triplets to item
  ids and back, on grids of dimension at most 3. Items are numbered along
  `i`, then `j`, then `k`, starting from `first_id`. It also offers
  per-direction sizes (`nb_item3`, `nb_item_dir`) and id offsets (`delta3`,
  `delta_dir`). `idx_dir0`, `idx_dir1` and `idx_dir2` extract a single index
  from an id.
- `meshsync.grid.CartesianGrid` builds the cell, node and face numberings of
  a Cartesian grid. Face numberings are grouped by the direction of their
  normal, and each block of ids follows the previous one.
- `meshsync.types.MeshSide` names the previous and next sides along a
  direction.
- `meshsync.options` defines three enums:
  - `VarSyncVersion` lists the synchronization strategies.
    `VarSyncVersion.AUTO.resolve(accelerator_available)` returns
    `OVERLAP_EVQUEUE` when an accelerator is available and `BULKSYNC_STD`
    otherwise.
  - `ItemSync` names the two item sides of an exchange, `OWNED` and `GHOST`.
  - `GroupCategory` names the two item groups, `OWN` and `ALL`.
- `meshsync.views` handles typed access to communication byte buffers:
  - `DataType` covers `INTEGER`, `REAL`, `REAL3` and `REAL3X3`.
  - `val_buf` and `val_buf2` view a byte buffer as a sequence of values, or as
    rows of values.
  - `estimated_max_buf_sz` gives an upper bound on the buffer size, with
    alignment padding included.
  - `MultiBufView` holds several sub-buffers laid out in one buffer.
  - `MultiBufView2` indexes sub-buffers by neighbour and by variable.
- `meshsync.buffers.SyncBuffers` holds two growable byte buffers, index 0 for
  "host" and index 1 for "device". Views are carved from each buffer one
  after another, and every sub-buffer is aligned on its value type.
  `reset_buf` makes the whole buffers free again.
- `meshsync.transfer` provides an in-order `RunQueue` of deferred operations
  with `RunQueueEvent` markers. It also has functions that queue copies
  between buffers and the packing or unpacking of variable values:
  - `async_transfer` and `async_transfer_multi` queue buffer copies.
  - `async_pack_var2buf` and `async_unpack_buf2var` handle global variables.
  - `async_pack_varmenv2buf` and `async_unpack_buf2varmenv` handle
    multi-environment values addressed by `(array, value)` index pairs.

  Queued work runs on `barrier()`, or when an event that depends on it is
  waited for.
- `meshsync.varsync` describes the variables to synchronize.
  `GlobVarSync` covers global values, with one value or one row of values per
  item. `CellMatVarScalSync` covers multi-environment values. Both are
  gathered in a `MeshVariableSynchronizerList`.
- `meshsync.syncitems.SyncItems` works from the shared and ghost local ids of
  each neighbour. It stores the per-neighbour index lists and sorts the items
  into private, shared and ghost groups. It raises `ValueError` if the
  groups do not add up.
- `meshsync.algo.VarSyncAlgo1` runs the exchange:
  1. It posts every receive.
  2. It packs and sends.
  3. It unpacks each message as soon as it arrives.
  4. It waits for the remaining sends.

  An inconsistent state raises `SyncError`. Messaging goes through any
  object that provides `recv`, `send`, `wait_some_requests` and
  `wait_all_requests` (see the `ParallelManager` protocol).
- `meshsync.syncdata` adapts a variable list to that exchange:
  - `Algo1SyncDataDH` packs into the device buffer and copies to the host
    buffer before sending. On receipt it copies back before unpacking.
  - `Algo1SyncDataD` sends and receives the device buffers directly. Its
    `PersistentInfoD` must be created as device-aware, otherwise the
    constructor raises `SyncError`.

## Example

```python
from meshsync.numbering import CartesianNumbering
from meshsync.transfer import RunQueue, async_pack_var2buf
from meshsync.views import DataType, val_buf

num = CartesianNumbering((5, 3, 1), 2, 0)
assert num.id(2, 1, 0) == 7
assert num.ijk(7) == (2, 1, 0)

buf = bytearray(16)
queue = RunQueue()
async_pack_var2buf([2, 0], [1.0, 2.0, 3.0], buf, DataType.REAL, None, queue)
assert queue.pending() == 1
queue.barrier()
assert list(val_buf(buf, DataType.REAL)) == [3.0, 1.0]
```

## What it does not do

- It ships no message-passing transport. You supply the object that
  `VarSyncAlgo1` sends and receives through.
- It has no accelerator support. The "device" buffer and the run queues all
  live in ordinary host memory and run in the calling thread.
- It has no mesh of its own, and no manager that picks a strategy. Compute
  steps are not overlapped with communication. You pass the item lists and
  values in, and drive the exchange yourself.
- It has no command-line tool.

## Tests

```
pip install -e .[test]
pytest
```