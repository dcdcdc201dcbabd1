import time
from dataclasses import dataclass
from typing import List, Optional

from .alerts import (
    BOLD_LOW_BASE_STAKE,
    CHAIN_ACTIVITY_WITHOUT_ASSERTIONS,
    CONFIRMATION_DELAY,
    CREATION_EVENT_STUCK,
    NO_CONFIRMATION_BLOCKS_WITH_CONFIRMATION_EVENTS,
    NO_CONFIRMATION_EVENTS,
    NO_CREATION_EVENTS,
    NON_BOLD_NO_RECENT_CREATION,
    VALIDATOR_WHITELIST_DISABLED,
)
from .chain_state import ChainStateSnapshot
from .config import ChainConfig, MonitorConfig
from .utils import is_event_recent


@dataclass(frozen=True)
class AlertConditions:
    has_creation_block: bool
    has_confirmed_block: bool
    has_recent_creation: bool
    has_activity_without_creation: bool
    has_activity_without_recent_creation: bool
    missing_confirmation_despite_creation: bool
    confirmation_event_without_confirmed_block: bool
    parent_blocks_since_confirmation: int
    confirmation_threshold_blocks: int
    confirmation_delay_exceeded: bool
    stuck_in_challenge_period: bool
    non_bold_missing_recent_creation: bool


def generate_conditions_for_alerts(
    chain: ChainConfig,
    chain_state: ChainStateSnapshot,
    is_bold: bool,
    config: Optional[MonitorConfig] = None,
    now: Optional[float] = None,
) -> AlertConditions:
    config = config or MonitorConfig()
    current_ts = now if now is not None else time.time()

    created = chain_state.child_latest_created_block
    confirmed = chain_state.child_latest_confirmed_block
    current = chain_state.child_current_block

    has_creation_block = created is not None
    has_confirmed_block = confirmed is not None

    # Compared with wall-clock time, not the child chain's latest timestamp.
    has_recent_creation = created is not None and is_event_recent(
        created.timestamp, current_ts, config.recent_activity_seconds
    )

    has_activity_without_creation = (
        current is not None and created is not None and current.number > created.number
    )
    has_activity_without_recent_creation = (
        has_activity_without_creation and not has_recent_creation
    )
    missing_confirmation_despite_creation = has_creation_block and not has_confirmed_block
    confirmation_event_without_confirmed_block = (
        chain_state.recent_confirmation_event is not None and not has_confirmed_block
    )

    parent_current = chain_state.parent_current_block
    parent_at_confirmation = chain_state.parent_block_at_confirmation
    if parent_current is not None and parent_at_confirmation is not None:
        parent_blocks_since_confirmation = (
            parent_current.number - parent_at_confirmation.number
        )
    else:
        parent_blocks_since_confirmation = 0

    confirmation_threshold_blocks = (
        chain.confirm_period_blocks + config.validator_afk_blocks
    )
    confirmation_delay_exceeded = (
        parent_blocks_since_confirmation > confirmation_threshold_blocks
    )

    stuck_in_challenge_period = (
        is_bold
        and created is not None
        and (current_ts - created.timestamp) > config.challenge_period_seconds
    )

    non_bold_missing_recent_creation = not is_bold and (
        not has_creation_block
        or (not has_recent_creation and has_activity_without_creation)
    )

    return AlertConditions(
        has_creation_block=has_creation_block,
        has_confirmed_block=has_confirmed_block,
        has_recent_creation=has_recent_creation,
        has_activity_without_creation=has_activity_without_creation,
        has_activity_without_recent_creation=has_activity_without_recent_creation,
        missing_confirmation_despite_creation=missing_confirmation_despite_creation,
        confirmation_event_without_confirmed_block=confirmation_event_without_confirmed_block,
        parent_blocks_since_confirmation=parent_blocks_since_confirmation,
        confirmation_threshold_blocks=confirmation_threshold_blocks,
        confirmation_delay_exceeded=confirmation_delay_exceeded,
        stuck_in_challenge_period=stuck_in_challenge_period,
        non_bold_missing_recent_creation=non_bold_missing_recent_creation,
    )


def analyze_assertion_events(
    chain_state: ChainStateSnapshot,
    chain: ChainConfig,
    validator_whitelist_disabled: bool,
    is_bold: bool = True,
    config: Optional[MonitorConfig] = None,
    now: Optional[float] = None,
) -> List[str]:
    """Map a chain snapshot to its health alerts.

    Every condition is evaluated independently, so several alerts can fire
    together. ``NO_CONFIRMATION_EVENTS`` may appear twice: once because no
    confirmed block exists and once because a creation exists without one.
    The list is never deduplicated.
    """
    conditions = generate_conditions_for_alerts(
        chain, chain_state, is_bold, config=config, now=now
    )
    alerts: List[str] = []

    if validator_whitelist_disabled:
        alerts.append(VALIDATOR_WHITELIST_DISABLED)

    if not conditions.has_creation_block:
        alerts.append(NO_CREATION_EVENTS)

    if not conditions.has_confirmed_block:
        alerts.append(NO_CONFIRMATION_EVENTS)

    if conditions.confirmation_event_without_confirmed_block:
        alerts.append(NO_CONFIRMATION_BLOCKS_WITH_CONFIRMATION_EVENTS)

    if conditions.has_activity_without_recent_creation:
        alerts.append(CHAIN_ACTIVITY_WITHOUT_ASSERTIONS)

    if conditions.missing_confirmation_despite_creation:
        alerts.append(NO_CONFIRMATION_EVENTS)

    if conditions.confirmation_delay_exceeded:
        alerts.append(CONFIRMATION_DELAY)

    if conditions.stuck_in_challenge_period:
        alerts.append(CREATION_EVENT_STUCK)

    if conditions.non_bold_missing_recent_creation:
        alerts.append(NON_BOLD_NO_RECENT_CREATION)

    return alerts


def collect_chain_alerts(
    chain_state: ChainStateSnapshot,
    chain: ChainConfig,
    is_bold: bool,
    config: Optional[MonitorConfig] = None,
    now: Optional[float] = None,
) -> List[str]:
    # BoLD validation is permissionless, so a disabled whitelist only matters
    # there in combination with a low base stake.
    whitelist_alert = chain_state.is_validator_whitelist_disabled and not is_bold
    alerts = analyze_assertion_events(
        chain_state, chain, whitelist_alert, is_bold=is_bold, config=config, now=now
    )
    if (
        is_bold
        and chain_state.is_base_stake_below_threshold
        and chain_state.is_validator_whitelist_disabled
    ):
        alerts.append(BOLD_LOW_BASE_STAKE)
    return alerts
