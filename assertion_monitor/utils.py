from collections.abc import Mapping
from typing import Any, Sequence, Tuple, Union

from .errors import AssertionDataError

MAXIMUM_SEARCH_DAYS = 7
RECENT_CREATION_CHECK_HOURS = 4
# Parent chain blocks a validator may be inactive before confirmation is late.
VALIDATOR_AFK_BLOCKS = 45818
SAFETY_BUFFER_DAYS = 4
CHUNK_SIZE = 800
MIN_CHUNK_SIZE = 100
CHUNK_DELAY_SECONDS = 0.1
SECONDS_IN_A_DAY = 24 * 60 * 60
CHALLENGE_PERIOD_SECONDS = 6.4 * SECONDS_IN_A_DAY
SEARCH_WINDOW_SECONDS = MAXIMUM_SEARCH_DAYS * SECONDS_IN_A_DAY
RECENT_ACTIVITY_SECONDS = RECENT_CREATION_CHECK_HOURS * 60 * 60
MIN_BASE_STAKE_WEI = 10 ** 18

PathSegment = Tuple[Union[str, int], int]

# (name, position) pairs: names apply to decoded mappings, positions to raw tuples.
BOLD_BLOCK_HASH_PATH: Sequence[PathSegment] = (
    ("afterState", 2),
    ("globalState", 0),
    ("globalStateBytes32Vals", 0),
    (0, 0),
)
CLASSIC_BLOCK_HASH_PATH: Sequence[PathSegment] = (
    ("afterState", 1),
    ("globalState", 0),
    ("bytes32Vals", 0),
    (0, 0),
)


def is_event_recent(
    event_timestamp: float, current_timestamp: float, seconds_threshold: float
) -> bool:
    return (current_timestamp - event_timestamp) <= seconds_threshold


def is_within_search_window(
    event_timestamp: float,
    current_timestamp: float,
    search_window_seconds: float = SEARCH_WINDOW_SECONDS,
) -> bool:
    return is_event_recent(event_timestamp, current_timestamp, search_window_seconds)


def to_hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value).lower()
    if not text.startswith("0x"):
        text = "0x" + text
    return text


def _step(node: Any, name: Union[str, int], position: int) -> Any:
    if isinstance(node, Mapping):
        if name in node:
            return node[name]
        return node[position]
    if isinstance(node, (str, bytes, bytearray)):
        raise TypeError("cannot index into a scalar value")
    return node[position]


def _walk_block_hash(assertion_data: Any, path: Sequence[PathSegment], label: str) -> str:
    node = assertion_data
    try:
        for name, position in path:
            node = _step(node, name, position)
    except (KeyError, IndexError, TypeError) as exc:
        raise AssertionDataError(
            "Incomplete %s assertion data structure" % label, assertion_data
        ) from exc
    if not node:
        raise AssertionDataError(
            "Incomplete %s assertion data structure" % label, assertion_data
        )
    return to_hex(node)


def extract_bold_block_hash(assertion_data: Any) -> str:
    return _walk_block_hash(assertion_data, BOLD_BLOCK_HASH_PATH, "BOLD")


def extract_classic_block_hash(assertion_data: Any) -> str:
    return _walk_block_hash(assertion_data, CLASSIC_BLOCK_HASH_PATH, "Classic")


def extract_block_hash(assertion_data: Any, is_bold: bool) -> str:
    if is_bold:
        return extract_bold_block_hash(assertion_data)
    return extract_classic_block_hash(assertion_data)
