import threading
import time
from typing import Any, Callable, Dict, List, Optional

from .abi import confirmation_event_for, creation_event_for
from .errors import MonitorCancelled
from .events import ConfirmationEvent, CreationEvent
from .utils import CHUNK_DELAY_SECONDS, CHUNK_SIZE, MIN_CHUNK_SIZE

LogQuery = Callable[[str, Dict[str, Any], int, int], List[Any]]


def fetch_most_recent_event(
    from_block: int,
    to_block: int,
    query: LogQuery,
    address: str,
    event: Dict[str, Any],
    chunk_size: int = CHUNK_SIZE,
    event_name: Optional[str] = None,
    delay_seconds: float = CHUNK_DELAY_SECONDS,
    stop_event: Optional[threading.Event] = None,
) -> Optional[Any]:
    """Scan ``[from_block, to_block]`` backwards and return the latest matching log.

    Windows of ``chunk_size`` blocks are queried from the top of the range
    down. The first window holding a match returns its last log. A query
    error halves the chunk size and rescans the unconsumed part of the range;
    once the chunk size is at or below ``MIN_CHUNK_SIZE`` the error is raised.
    """
    label = event_name or event.get("name") or "event"
    current_to = to_block

    while current_to >= from_block:
        if stop_event is not None and stop_event.is_set():
            raise MonitorCancelled("scan for %s cancelled" % label)

        current_from = max(current_to - chunk_size + 1, from_block)
        try:
            logs = query(address, event, current_from, current_to)
        except MonitorCancelled:
            raise
        except Exception as exc:
            print(
                "[ERROR] log query for %s failed on blocks %d-%d: %s"
                % (label, current_from, current_to, exc),
                flush=True,
            )
            if chunk_size > MIN_CHUNK_SIZE:
                chunk_size = chunk_size // 2
                print(
                    "[INFO] Retrying with smaller chunk size: %d" % chunk_size,
                    flush=True,
                )
                continue
            raise

        if logs:
            print(
                "[INFO] Found %s in block range %d to %d"
                % (label, current_from, current_to),
                flush=True,
            )
            return logs[-1]

        if current_from == from_block:
            break

        current_to = current_from - 1
        _pause(delay_seconds, stop_event)

    return None


def fetch_most_recent_creation_event(
    from_block: int,
    to_block: int,
    query: LogQuery,
    rollup_address: str,
    is_bold: bool,
    chunk_size: int = CHUNK_SIZE,
    delay_seconds: float = CHUNK_DELAY_SECONDS,
    stop_event: Optional[threading.Event] = None,
) -> Optional[CreationEvent]:
    log = fetch_most_recent_event(
        from_block,
        to_block,
        query,
        rollup_address,
        creation_event_for(is_bold),
        chunk_size=chunk_size,
        event_name="creation event" if is_bold else "node creation event",
        delay_seconds=delay_seconds,
        stop_event=stop_event,
    )
    if log is None:
        return None
    return CreationEvent.from_log(log)


def fetch_most_recent_confirmation_event(
    from_block: int,
    to_block: int,
    query: LogQuery,
    rollup_address: str,
    is_bold: bool,
    chunk_size: int = CHUNK_SIZE,
    delay_seconds: float = CHUNK_DELAY_SECONDS,
    stop_event: Optional[threading.Event] = None,
) -> Optional[ConfirmationEvent]:
    log = fetch_most_recent_event(
        from_block,
        to_block,
        query,
        rollup_address,
        confirmation_event_for(is_bold),
        chunk_size=chunk_size,
        event_name="confirmation event" if is_bold else "node confirmation event",
        delay_seconds=delay_seconds,
        stop_event=stop_event,
    )
    if log is None:
        return None
    return ConfirmationEvent.from_log(log)


def _pause(delay_seconds: float, stop_event: Optional[threading.Event]) -> None:
    if delay_seconds <= 0:
        return
    if stop_event is not None:
        stop_event.wait(delay_seconds)
        return
    time.sleep(delay_seconds)
