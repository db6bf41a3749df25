# shardemu

Building blocks for emulating a sharded blockchain in which accounts can move
between shards while the system keeps running.

## What is inside

- `shardemu.config`: `ChainConfig`, which holds the block size limits,
  migration quotas and experiment switches. `ChainConfig.shard_index()` turns
  the shard id into its number. `default_config()` returns the stock values.
  The module also holds the static tables `NODE_TABLE`, `SHARD_TABLE` and
  `SHARD_TABLE_INT2STR`.
- `shardemu.account`: address generation with `generate_address` (a fresh
  P-256 key pair) and `hash_pub_key`. `addr_to_shard` applies the
  address-to-shard rule: the last five hex digits modulo the shard count. The
  module also has `AccountState`, which can be serialised and hashed, and
  `AccountRegistry`. The registry records which shard every account is in and
  which accounts are locked or leaving.
- `shardemu.codec`: `encode_record` and `decode_record`, the canonical
  encoding used by every record, and `ProofDB`, an append-only list of proof
  nodes.
- `shardemu.transaction`: `Transaction` and `AggregateTransaction`. An
  `AggregateTransaction` has one sender and several recipients. Its `split()`
  breaks it into single transfers, and `to_json()` renders it as JSON.
- `shardemu.migration`: the records exchanged during a migration, namely
  `MigrationRequest`, `MigrationTransfer`, `Announcement`, `BalanceSync` and
  `RelayTransaction`.
- `shardemu.block`: `BlockHeader` and `Block`, with stable encoding, SHA-256
  hashing and a text `summary()`.
- `shardemu.txpool`: `TxPool`, a FIFO transaction queue.
  - `fetch_txs_to_pack` takes transactions from the front of the queue for the
    next block. When it does so, it records transactions that touch locked or
    departing accounts in the matching holding pools.
  - `lock_txs` copies the queued transactions that touch those accounts into
    the holding pools.
  - `inject` and `inject_gradually` load transactions whose sender belongs to
    a given shard.
- `shardemu.migration_pool`: `QueuePool` and `MigrationRequestPool`,
  thread-safe FIFO queues that hand out migration records under a quota or a
  per-block cap.
- `shardemu.graph`: `Graph`, the transaction graph, in which each account is
  a vertex with weighted edges.
- `shardemu.pagerank`: `pagerank`, `allocate` and `transaction_graph`, which
  give shard-aware PageRank scores and assign each account to its best shard.
- `shardemu.clpa`: `CLPAState`, a constrained label propagation partitioner.
- `shardemu.lbf`: `LBFState`, a load-balanced random fill partitioner.
- `shardemu.metis`: `METISState`, which partitions with an external
  partitioning program.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## A short example

```python
from shardemu.account import AccountRegistry
from shardemu.clpa import CLPAState

registry = AccountRegistry(shard_num=2, own_shard=0)
state = CLPAState(weight_penalty=0.5, max_iterations=10, shard_num=2, registry=registry)

state.add_edge("00000000000000000000000000000000000000a1",
               "00000000000000000000000000000000000000a2")
state.add_edge("00000000000000000000000000000000000000a2",
               "00000000000000000000000000000000000000a4")

moved, targets = state.partition()
for addr in moved:
    print(addr, "->", targets[addr])
```

`partition()` returns two things:

- the addresses that should change shard, in the order in which they were
  first moved;
- a mapping from each of those addresses to its new shard.

`LBFState.partition(rng)` returns the same shape of result.
`METISState.partition(executable, workdir)` does too. It writes the graph to
`sampleGraph0.txt` in `workdir`, runs `executable` with the input file, the
output file and the shard count as its arguments, and then reads the labels
back from `MetisPartionGraph0.txt`. If the program cannot be run or fails,
`run_partitioner` logs the error and returns `None`. Reading the result file
then fails if the program did not write it.

## What it does not do

This package provides the data structures and algorithms of a sharded chain
emulator, not a running network. It has:

- no consensus or networking between nodes;
- no node or client process and no command-line program;
- no persistent block storage;
- no state trie for account balances.

Blocks and records can be encoded, decoded and hashed, but keeping them is
left to the caller.