import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .utils import (
    CHALLENGE_PERIOD_SECONDS,
    CHUNK_DELAY_SECONDS,
    CHUNK_SIZE,
    MAXIMUM_SEARCH_DAYS,
    MIN_BASE_STAKE_WEI,
    RECENT_ACTIVITY_SECONDS,
    SAFETY_BUFFER_DAYS,
    SEARCH_WINDOW_SECONDS,
    VALIDATOR_AFK_BLOCKS,
)

DEFAULT_CONFIG_PATH = "config.json"


@dataclass
class MonitorConfig:
    challenge_period_seconds: float = CHALLENGE_PERIOD_SECONDS
    recent_activity_seconds: float = RECENT_ACTIVITY_SECONDS
    search_window_seconds: float = SEARCH_WINDOW_SECONDS
    validator_afk_blocks: int = VALIDATOR_AFK_BLOCKS
    maximum_search_days: int = MAXIMUM_SEARCH_DAYS
    safety_buffer_days: int = SAFETY_BUFFER_DAYS
    chunk_size: int = CHUNK_SIZE
    chunk_delay_seconds: float = CHUNK_DELAY_SECONDS
    min_base_stake_wei: int = MIN_BASE_STAKE_WEI
    rpc_timeout_seconds: float = 30.0


@dataclass
class ChainConfig:
    name: str
    chain_id: int
    parent_chain_id: int
    confirm_period_blocks: int
    parent_rpc_url: str
    orbit_rpc_url: str
    rollup: str
    parent_block_time_seconds: Optional[float] = None
    explorer_url: str = ""
    parent_explorer_url: str = ""


@dataclass
class SlackConfig:
    token: str = ""
    channel: str = ""
    enabled: bool = False


@dataclass
class ServiceConfig:
    chains: List[ChainConfig] = field(default_factory=list)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    enable_alerting: bool = False
    timeout_seconds: Optional[float] = None
    max_workers: int = 4
    from_block: Optional[int] = None
    to_block: Optional[int] = None


def load_json_config(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def build_chain_config(payload: Dict[str, Any]) -> ChainConfig:
    eth_bridge = payload.get("ethBridge", {})
    block_time = payload.get("parentBlockTimeSeconds")
    try:
        return ChainConfig(
            name=str(payload["name"]),
            chain_id=int(payload["chainId"]),
            parent_chain_id=int(payload["parentChainId"]),
            confirm_period_blocks=int(payload["confirmPeriodBlocks"]),
            parent_rpc_url=str(payload["parentRpcUrl"]),
            orbit_rpc_url=str(payload["orbitRpcUrl"]),
            rollup=str(eth_bridge["rollup"]),
            parent_block_time_seconds=(
                float(block_time) if block_time is not None else None
            ),
            explorer_url=str(payload.get("explorerUrl", "")),
            parent_explorer_url=str(payload.get("parentExplorerUrl", "")),
        )
    except KeyError as exc:
        raise ValueError(
            "Chain %r is missing required field %s"
            % (payload.get("name", "<unnamed>"), exc.args[0])
        ) from exc


def build_service_config(raw: Optional[Dict[str, Any]]) -> ServiceConfig:
    payload = raw or {}

    chains_payload = payload.get("childChains") or []
    chains = [build_chain_config(item) for item in chains_payload]

    monitor_payload = payload.get("monitor", {})
    monitor = MonitorConfig(
        challenge_period_seconds=float(
            monitor_payload.get(
                "challenge_period_seconds", MonitorConfig.challenge_period_seconds
            )
        ),
        recent_activity_seconds=float(
            monitor_payload.get(
                "recent_activity_seconds", MonitorConfig.recent_activity_seconds
            )
        ),
        search_window_seconds=float(
            monitor_payload.get(
                "search_window_seconds", MonitorConfig.search_window_seconds
            )
        ),
        validator_afk_blocks=int(
            monitor_payload.get(
                "validator_afk_blocks", MonitorConfig.validator_afk_blocks
            )
        ),
        maximum_search_days=int(
            monitor_payload.get("maximum_search_days", MonitorConfig.maximum_search_days)
        ),
        safety_buffer_days=int(
            monitor_payload.get("safety_buffer_days", MonitorConfig.safety_buffer_days)
        ),
        chunk_size=int(monitor_payload.get("chunk_size", MonitorConfig.chunk_size)),
        chunk_delay_seconds=float(
            monitor_payload.get("chunk_delay_seconds", MonitorConfig.chunk_delay_seconds)
        ),
        min_base_stake_wei=int(
            monitor_payload.get("min_base_stake_wei", MonitorConfig.min_base_stake_wei)
        ),
        rpc_timeout_seconds=float(
            monitor_payload.get("rpc_timeout_seconds", MonitorConfig.rpc_timeout_seconds)
        ),
    )

    slack_payload = payload.get("slack", {})
    slack_token = str(slack_payload.get("token") or os.environ.get("SLACK_TOKEN", ""))
    slack_channel = str(
        slack_payload.get("channel") or os.environ.get("SLACK_CHANNEL", "")
    )
    slack = SlackConfig(
        token=slack_token,
        channel=slack_channel,
        enabled=bool(slack_payload.get("enabled", bool(slack_token and slack_channel))),
    )

    timeout = payload.get("timeout_seconds")
    from_block = payload.get("from_block")
    to_block = payload.get("to_block")
    return ServiceConfig(
        chains=chains,
        monitor=monitor,
        slack=slack,
        enable_alerting=bool(payload.get("enable_alerting", False)),
        timeout_seconds=float(timeout) if timeout is not None else None,
        max_workers=int(payload.get("max_workers", 4)),
        from_block=int(from_block) if from_block is not None else None,
        to_block=int(to_block) if to_block is not None else None,
    )


def validate_config(config: ServiceConfig) -> None:
    if not config.chains:
        raise ValueError("Chains not found in the config file.")
    if config.monitor.chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if (config.from_block is None) != (config.to_block is None):
        raise ValueError("--from-block and --to-block must be given together")
    if config.from_block is not None and config.to_block < config.from_block:
        raise ValueError("--to-block must not be lower than --from-block")
    if config.enable_alerting and not (config.slack.token and config.slack.channel):
        raise ValueError("alerting requires a Slack token and channel")
