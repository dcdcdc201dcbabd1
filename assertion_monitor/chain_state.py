import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from .config import ChainConfig, MonitorConfig
from .errors import MonitorCancelled
from .events import BlockRef, ConfirmationEvent, CreationEvent
from .locator import fetch_most_recent_confirmation_event, fetch_most_recent_creation_event
from .utils import extract_block_hash


@dataclass(frozen=True)
class ChainStateSnapshot:
    child_current_block: BlockRef
    child_latest_created_block: Optional[BlockRef] = None
    child_latest_confirmed_block: Optional[BlockRef] = None
    parent_current_block: Optional[BlockRef] = None
    parent_block_at_creation: Optional[BlockRef] = None
    parent_block_at_confirmation: Optional[BlockRef] = None
    recent_creation_event: Optional[CreationEvent] = None
    recent_confirmation_event: Optional[ConfirmationEvent] = None
    is_validator_whitelist_disabled: bool = False
    is_base_stake_below_threshold: bool = False


class PassStopEvent(threading.Event):
    """Stop flag for one assembly pass.

    Reads as set when either the pass itself or the caller's ``parent`` event
    has been set, so sibling lookups can be stopped without stopping the caller.
    """

    def __init__(self, parent: Optional[threading.Event] = None) -> None:
        super().__init__()
        self.parent = parent

    def is_set(self) -> bool:
        if super().is_set():
            return True
        return self.parent is not None and self.parent.is_set()


def get_latest_creation_block(
    child_client: Any,
    creation_event: Optional[CreationEvent],
    is_bold: bool,
    stop_event: Optional[threading.Event] = None,
) -> Optional[BlockRef]:
    if creation_event is None:
        return None
    # Raises AssertionDataError when the payload carries no block hash.
    block_hash = extract_block_hash(creation_event.assertion, is_bold)
    _raise_if_stopped(stop_event)
    block = child_client.get_block_by_hash(block_hash)
    if block is None:
        print(
            "[WARN] Child block %s referenced by the latest creation event was not found"
            % block_hash,
            flush=True,
        )
        return None
    print("[INFO] Last processed child chain block: %d" % block.number, flush=True)
    return block


def get_latest_confirmed_block(
    child_client: Any,
    confirmation_event: Optional[ConfirmationEvent],
    stop_event: Optional[threading.Event] = None,
) -> Optional[BlockRef]:
    if confirmation_event is None:
        print("[INFO] No confirmed child block found", flush=True)
        return None
    _raise_if_stopped(stop_event)
    block = child_client.get_block_by_hash(confirmation_event.block_hash)
    if block is None:
        print(
            "[WARN] Confirmed child block %s could not be resolved"
            % confirmation_event.block_hash,
            flush=True,
        )
        return None
    print("[INFO] Found confirmed child block: %d" % block.number, flush=True)
    return block


def get_parent_block_at(
    parent_client: Any,
    event: Any,
    stop_event: Optional[threading.Event] = None,
) -> Optional[BlockRef]:
    if event is None:
        return None
    _raise_if_stopped(stop_event)
    return parent_client.get_block_by_number(event.block_number)


def is_base_stake_below_threshold(
    parent_client: Any, rollup_address: str, is_bold: bool, min_base_stake_wei: int
) -> bool:
    if not is_bold:
        return False
    return parent_client.base_stake(rollup_address) < min_base_stake_wei


def fetch_chain_state(
    child_client: Any,
    parent_client: Any,
    chain: ChainConfig,
    is_bold: bool,
    from_block: int,
    to_block: int,
    config: Optional[MonitorConfig] = None,
    stop_event: Optional[threading.Event] = None,
) -> ChainStateSnapshot:
    """Build one snapshot of the checkpoint pipeline for ``chain``.

    The clients only need the read methods of ``blockchain.ChainClient``.
    Independent lookups run on a small thread pool; the snapshot is returned
    only when every lookup has finished. A fatal error stops the lookups still
    running and then propagates.
    """
    config = config or MonitorConfig()
    pass_stop = PassStopEvent(stop_event)

    def guarded(func: Callable[..., Any], *args: Any) -> Any:
        _raise_if_stopped(pass_stop)
        return func(*args)

    with ThreadPoolExecutor(max_workers=4) as pool:
        child_current_future = pool.submit(guarded, child_client.get_latest_block)
        parent_current_future = pool.submit(guarded, parent_client.get_latest_block)
        creation_future = pool.submit(
            fetch_most_recent_creation_event,
            from_block,
            to_block,
            parent_client.get_logs,
            chain.rollup,
            is_bold,
            chunk_size=config.chunk_size,
            delay_seconds=config.chunk_delay_seconds,
            stop_event=pass_stop,
        )
        confirmation_future = pool.submit(
            fetch_most_recent_confirmation_event,
            from_block,
            to_block,
            parent_client.get_logs,
            chain.rollup,
            is_bold,
            chunk_size=config.chunk_size,
            delay_seconds=config.chunk_delay_seconds,
            stop_event=pass_stop,
        )

        (
            child_current_block,
            parent_current_block,
            recent_creation_event,
            recent_confirmation_event,
        ) = _collect(
            [child_current_future, parent_current_future, creation_future, confirmation_future],
            pass_stop,
        )

        created_block_future = pool.submit(
            get_latest_creation_block,
            child_client,
            recent_creation_event,
            is_bold,
            pass_stop,
        )
        confirmed_block_future = pool.submit(
            get_latest_confirmed_block,
            child_client,
            recent_confirmation_event,
            pass_stop,
        )
        parent_at_creation_future = pool.submit(
            get_parent_block_at, parent_client, recent_creation_event, pass_stop
        )
        parent_at_confirmation_future = pool.submit(
            get_parent_block_at, parent_client, recent_confirmation_event, pass_stop
        )

        (
            child_latest_created_block,
            child_latest_confirmed_block,
            parent_block_at_creation,
            parent_block_at_confirmation,
        ) = _collect(
            [
                created_block_future,
                confirmed_block_future,
                parent_at_creation_future,
                parent_at_confirmation_future,
            ],
            pass_stop,
        )

    _raise_if_stopped(pass_stop)
    whitelist_disabled = parent_client.validator_whitelist_disabled(chain.rollup)
    base_stake_low = is_base_stake_below_threshold(
        parent_client, chain.rollup, is_bold, config.min_base_stake_wei
    )

    chain_state = ChainStateSnapshot(
        child_current_block=child_current_block,
        child_latest_created_block=child_latest_created_block,
        child_latest_confirmed_block=child_latest_confirmed_block,
        parent_current_block=parent_current_block,
        parent_block_at_creation=parent_block_at_creation,
        parent_block_at_confirmation=parent_block_at_confirmation,
        recent_creation_event=recent_creation_event,
        recent_confirmation_event=recent_confirmation_event,
        is_validator_whitelist_disabled=whitelist_disabled,
        is_base_stake_below_threshold=base_stake_low,
    )

    print(
        "[INFO] Built chain state blocks: child_current=%s child_created=%s "
        "child_confirmed=%s parent_current=%s parent_at_creation=%s "
        "parent_at_confirmation=%s"
        % (
            _block_number(child_current_block),
            _block_number(child_latest_created_block),
            _block_number(child_latest_confirmed_block),
            _block_number(parent_current_block),
            _block_number(parent_block_at_creation),
            _block_number(parent_block_at_confirmation),
        ),
        flush=True,
    )
    return chain_state


def _collect(futures: List["Future[Any]"], pass_stop: PassStopEvent) -> List[Any]:
    try:
        return [future.result() for future in futures]
    except BaseException:
        # Stop the lookups still in flight before the error leaves the pool.
        pass_stop.set()
        for future in futures:
            future.cancel()
        raise


def _block_number(block: Optional[BlockRef]) -> str:
    if block is None:
        return "n/a"
    return str(block.number)


def _raise_if_stopped(stop_event: Optional[threading.Event]) -> None:
    if stop_event is not None and stop_event.is_set():
        raise MonitorCancelled("chain state assembly cancelled")
