import math
import signal
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .alerts import describe_alert
from .blockchain import create_child_client, create_parent_client
from .chain_state import ChainStateSnapshot, fetch_chain_state
from .config import ChainConfig, MonitorConfig, ServiceConfig
from .errors import MonitorCancelled
from .monitoring import collect_chain_alerts
from .slack import SlackNotifier
from .utils import SECONDS_IN_A_DAY, is_within_search_window

# Average block time in seconds by parent chain id.
PARENT_BLOCK_TIMES: Dict[int, float] = {
    1: 12.0,
    17000: 12.0,
    11155111: 12.0,
    42161: 0.25,
    42170: 0.25,
    421614: 0.25,
    8453: 2.0,
    84532: 2.0,
}

ERROR_PREFIX = "Error processing chain data for assertion monitoring"


@dataclass
class SearchWindow:
    days: int
    blocks: int


@dataclass
class ChainCheckResult:
    chain_name: str
    alerts: List[str] = field(default_factory=list)
    error: Optional[str] = None
    is_bold: Optional[bool] = None
    chain_state: Optional[ChainStateSnapshot] = None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "error"
        if self.alerts:
            return "alerts"
        return "healthy"


def get_block_time_for_chain(chain: ChainConfig) -> float:
    if chain.parent_block_time_seconds is not None:
        return chain.parent_block_time_seconds
    return PARENT_BLOCK_TIMES.get(chain.parent_chain_id, 0.0)


def calculate_search_window(
    chain: ChainConfig, block_time_seconds: float, config: Optional[MonitorConfig] = None
) -> SearchWindow:
    config = config or MonitorConfig()
    if block_time_seconds <= 0:
        return SearchWindow(days=0, blocks=0)

    initial_blocks = chain.confirm_period_blocks + config.validator_afk_blocks
    timespan_days = (block_time_seconds * initial_blocks) / SECONDS_IN_A_DAY
    days_minus_safety = max(timespan_days - config.safety_buffer_days, 0)
    days = min(math.ceil(days_minus_safety), config.maximum_search_days)

    max_searchable_blocks = math.floor(
        (config.maximum_search_days * SECONDS_IN_A_DAY) / block_time_seconds
    )
    return SearchWindow(days=days, blocks=min(initial_blocks, max_searchable_blocks))


def get_block_range(
    parent_client: Any, chain: ChainConfig, config: Optional[MonitorConfig] = None
) -> Tuple[int, int]:
    latest = parent_client.get_block_number()
    window = calculate_search_window(chain, get_block_time_for_chain(chain), config)
    return max(latest - window.blocks, 0), latest


def format_chain_state(
    chain: ChainConfig,
    chain_state: ChainStateSnapshot,
    config: Optional[MonitorConfig] = None,
    now: Optional[float] = None,
) -> str:
    config = config or MonitorConfig()
    ts = now if now is not None else time.time()
    rows = [
        "%s state:" % chain.name,
        "  child current block: %d" % chain_state.child_current_block.number,
    ]

    created = chain_state.child_latest_created_block
    if created is None:
        rows.append("  latest created child block: not found")
    else:
        age = int(ts - created.timestamp)
        row = "  latest created child block: %d (%ds ago)" % (created.number, age)
        if not is_within_search_window(created.timestamp, ts, config.search_window_seconds):
            row += " outside the %d-day search window" % config.maximum_search_days
        rows.append(row)

    confirmed = chain_state.child_latest_confirmed_block
    if confirmed is None:
        rows.append("  latest confirmed child block: not found")
    else:
        rows.append(
            "  latest confirmed child block: %d (%ds ago)"
            % (confirmed.number, int(ts - confirmed.timestamp))
        )

    parent_current = chain_state.parent_current_block
    parent_confirmed = chain_state.parent_block_at_confirmation
    if parent_current is not None and parent_confirmed is not None:
        rows.append(
            "  parent blocks since confirmation: %d"
            % (parent_current.number - parent_confirmed.number)
        )
    rows.append(
        "  validator whitelist disabled: %s"
        % ("yes" if chain_state.is_validator_whitelist_disabled else "no")
    )

    if chain.parent_explorer_url:
        rows.append(
            "  rollup: %s" % explorer_link(chain.parent_explorer_url, "address", chain.rollup)
        )
        creation = chain_state.recent_creation_event
        if creation is not None and creation.transaction_hash:
            rows.append(
                "  latest creation tx: %s"
                % explorer_link(chain.parent_explorer_url, "tx", creation.transaction_hash)
            )
    if chain.explorer_url and created is not None:
        rows.append(
            "  created child block link: %s"
            % explorer_link(chain.explorer_url, "block", str(created.number))
        )
    return "\n".join(rows)


def explorer_link(base_url: str, kind: str, value: str) -> str:
    return "%s/%s/%s" % (base_url.rstrip("/"), kind, value)


class MonitoringService:
    def __init__(
        self,
        config: ServiceConfig,
        parent_client_factory: Optional[Callable[..., Any]] = None,
        child_client_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.config = config
        self.parent_client_factory = parent_client_factory or create_parent_client
        self.child_client_factory = child_client_factory or create_child_client
        self.stop_event = threading.Event()
        self.notifier: Optional[SlackNotifier] = None
        if config.enable_alerting and config.slack.enabled:
            self.notifier = SlackNotifier(config.slack.token, config.slack.channel)

    def run(self) -> int:
        if threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGINT, self._handle_stop)
            signal.signal(signal.SIGTERM, self._handle_stop)

        print("[INFO] Starting assertion monitoring...", flush=True)
        results = self.check_all_chains()

        summary = self.build_summary(results)
        errors = self.build_error_messages(results)
        if summary:
            print(summary, flush=True)
            self._notify(summary)
        if errors:
            for message in errors:
                print("[ERROR] %s" % message, flush=True)
                self._notify(message)
        if not summary and not errors:
            print("[INFO] Monitoring complete - all chains healthy", flush=True)

        return 1 if errors else 0

    def check_all_chains(self) -> List[ChainCheckResult]:
        chains = self.config.chains
        if not chains:
            return []
        workers = max(1, min(self.config.max_workers, len(chains)))
        pool = ThreadPoolExecutor(max_workers=workers)
        try:
            futures = [pool.submit(self.check_chain, chain) for chain in chains]
            _, pending = wait(futures, timeout=self.config.timeout_seconds)
            if pending:
                print(
                    "[WARN] Invocation timeout of %ss reached; cancelling %d chain checks"
                    % (self.config.timeout_seconds, len(pending)),
                    flush=True,
                )
                self.stop_event.set()
            return [future.result() for future in futures]
        finally:
            pool.shutdown(wait=True)

    def check_chain(
        self, chain: ChainConfig, block_range: Optional[Tuple[int, int]] = None
    ) -> ChainCheckResult:
        result = ChainCheckResult(chain_name=chain.name)
        try:
            self._run_chain_pass(chain, result, block_range)
        except MonitorCancelled as exc:
            result.error = "%s: cancelled (%s)" % (chain.name, exc)
        except Exception as exc:
            result.error = "%s: %s" % (chain.name, exc)
        if result.error is not None:
            print("[ERROR] %s: %s" % (ERROR_PREFIX, result.error), flush=True)
        return result

    def _run_chain_pass(
        self,
        chain: ChainConfig,
        result: ChainCheckResult,
        block_range: Optional[Tuple[int, int]],
    ) -> None:
        print("[INFO] Monitoring %s..." % chain.name, flush=True)
        monitor = self.config.monitor
        parent_client = self.parent_client_factory(chain, monitor.rpc_timeout_seconds)
        child_client = self.child_client_factory(chain, monitor.rpc_timeout_seconds)

        is_bold = parent_client.is_bold_enabled(chain.rollup)
        result.is_bold = is_bold
        print(
            "[INFO] Chain type: %s rollup" % ("BoLD" if is_bold else "Classic"),
            flush=True,
        )

        if block_range is None and self.config.from_block is not None:
            block_range = (self.config.from_block, self.config.to_block)
        if block_range is None:
            block_range = get_block_range(parent_client, chain, monitor)
        from_block, to_block = block_range
        print(
            "[INFO] Scanning blocks %d to %d (%d blocks)"
            % (from_block, to_block, to_block - from_block),
            flush=True,
        )

        chain_state = fetch_chain_state(
            child_client,
            parent_client,
            chain,
            is_bold,
            from_block,
            to_block,
            config=monitor,
            stop_event=self.stop_event,
        )
        result.chain_state = chain_state
        print(format_chain_state(chain, chain_state, monitor), flush=True)

        result.alerts = collect_chain_alerts(chain_state, chain, is_bold, config=monitor)
        if result.alerts:
            print(
                "[INFO] Generated %d alerts for %s" % (len(result.alerts), chain.name),
                flush=True,
            )
        else:
            print("[INFO] No issues found for %s" % chain.name, flush=True)

    @staticmethod
    def build_summary(results: List[ChainCheckResult]) -> Optional[str]:
        sections = []
        for result in results:
            if result.status != "alerts":
                continue
            lines = ["%s:" % result.chain_name]
            lines.extend("- %s" % describe_alert(alert) for alert in result.alerts)
            sections.append("\n".join(lines))
        if not sections:
            return None
        return "Assertion Monitor Alert Summary:\n\n%s" % "\n\n".join(sections)

    @staticmethod
    def build_error_messages(results: List[ChainCheckResult]) -> List[str]:
        return [
            "%s: %s" % (ERROR_PREFIX, result.error)
            for result in results
            if result.error is not None
        ]

    def _notify(self, message: str) -> None:
        if self.notifier is None:
            return
        print("[INFO] Sending alerts to Slack...", flush=True)
        self.notifier.send(message)

    def _handle_stop(self, signum: int, _frame: object) -> None:
        print("[INFO] Received signal %d, stopping." % signum, flush=True)
        self.stop_event.set()
