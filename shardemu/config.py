"""Chain configuration and the static shard/node tables."""

from __future__ import annotations

from dataclasses import dataclass

CLIENT_ADDR = "127.0.0.1:8800"

NODE_TABLE: dict[str, dict[str, str]] = {
    shard: {f"N{node}": f"127.0.0.1:{port_base + node}" for node in range(7)}
    for shard, port_base in (("S0", 8010), ("S1", 8020), ("S2", 8030), ("S3", 8040))
}

SHARD_TABLE: dict[str, int] = {"S0": 0, "S1": 1, "S2": 2, "S3": 3}

SHARD_TABLE_INT2STR: dict[int, str] = {index: name for name, index in SHARD_TABLE.items()}

INIT_BALANCE = int("10000000000000000000000000000000000000000")


@dataclass
class ChainConfig:
    """Settings shared by every component of one node."""

    chain_id: int = 77
    node_id: str = ""
    shard_id: str = ""
    shard_num: int = 1
    malicious_num: int = 0
    path: str = ""
    block_interval: int = 6
    max_block_size: int = 2000
    max_mig_size: int = 1000
    max_mig2_size: int = 500
    max_mig1_size: int = 500
    max_ann_size: int = 500
    max_cap_size: int = 500
    relay_interval: int = 1000
    max_relay_block_size: int = 10
    min_relay_block_size: int = 1
    inject_speed: int = 2000
    max_commit: int = 100000
    max_commit_block: int = 50
    client_send_tx: bool = True
    stop_when_migrating: bool = False
    lock_acc_when_migrating: bool = False
    ratio_experiment: bool = False
    ratio_experiment_multi: bool = True
    timing_experiment: bool = False
    timing_experiment_interval: int = 3
    fail: bool = False
    fail_time: int = 8
    cross_chain: bool = False
    algorithm: bool = False
    pressure: bool = False
    partition_algorithm: str = "CLPA"
    migrate_before_inject: bool = False
    only_once: int = 100
    not_lock_immediately: bool = True
    relay_lock: bool = False

    def shard_index(self) -> int:
        """Return the numeric index of this node's shard."""
        try:
            return SHARD_TABLE[self.shard_id]
        except KeyError:
            raise ValueError(f"unknown shard id: {self.shard_id!r}") from None


def default_config() -> ChainConfig:
    """Return a fresh configuration holding the default settings."""
    return ChainConfig()