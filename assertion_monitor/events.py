from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .utils import to_hex


def _get(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


@dataclass(frozen=True)
class BlockRef:
    number: int
    timestamp: int
    hash: str
    parent_hash: str

    @classmethod
    def from_rpc(cls, block: Any) -> "BlockRef":
        return cls(
            number=int(_get(block, "number")),
            timestamp=int(_get(block, "timestamp")),
            hash=to_hex(_get(block, "hash")),
            parent_hash=to_hex(_get(block, "parentHash")),
        )


@dataclass(frozen=True)
class CreationEvent:
    block_number: int
    assertion: Any
    event_name: str = ""
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None
    args: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_log(cls, log: Any) -> "CreationEvent":
        args = _get(log, "args") or {}
        return cls(
            block_number=int(_get(log, "blockNumber")),
            assertion=_get(args, "assertion"),
            event_name=str(_get(log, "event") or ""),
            transaction_hash=_optional_hex(_get(log, "transactionHash")),
            log_index=_optional_int(_get(log, "logIndex")),
            args=dict(args),
        )


@dataclass(frozen=True)
class ConfirmationEvent:
    block_number: int
    block_hash: str
    event_name: str = ""
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None
    send_root: Optional[str] = None

    @classmethod
    def from_log(cls, log: Any) -> "ConfirmationEvent":
        args = _get(log, "args") or {}
        return cls(
            block_number=int(_get(log, "blockNumber")),
            block_hash=to_hex(_get(args, "blockHash")),
            event_name=str(_get(log, "event") or ""),
            transaction_hash=_optional_hex(_get(log, "transactionHash")),
            log_index=_optional_int(_get(log, "logIndex")),
            send_root=_optional_hex(_get(args, "sendRoot")),
        )


def _optional_hex(value: Any) -> Optional[str]:
    if value is None:
        return None
    return to_hex(value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)
