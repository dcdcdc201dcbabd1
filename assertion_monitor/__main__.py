import argparse
import copy
from typing import Any, Dict

from .config import (
    DEFAULT_CONFIG_PATH,
    ServiceConfig,
    build_service_config,
    load_json_config,
    validate_config,
)
from .service import MonitoringService


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check rollup assertion creation and confirmation health."
    )
    parser.add_argument(
        "--config",
        "--config-path",
        dest="config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to JSON config file with a childChains list.",
    )
    parser.add_argument(
        "--enable-alerting",
        action="store_true",
        help="Post the alert summary and errors to Slack.",
    )
    parser.add_argument(
        "--chain",
        action="append",
        help="Only check the named chain (repeatable).",
    )
    parser.add_argument("--from-block", type=int, help="First parent chain block to scan.")
    parser.add_argument("--to-block", type=int, help="Last parent chain block to scan.")
    parser.add_argument(
        "--timeout-seconds",
        type=float,
        help="Cancel chain checks still running after this many seconds.",
    )
    parser.add_argument("--slack-token", help="Slack bot token.")
    parser.add_argument("--slack-channel", help="Slack channel id or name.")
    return parser.parse_args()


def merged_config_from_cli(args: argparse.Namespace) -> ServiceConfig:
    raw: Dict[str, Any] = load_json_config(args.config)

    merged = copy.deepcopy(raw)
    merged.setdefault("slack", {})

    if args.chain:
        wanted = set(args.chain)
        merged["childChains"] = [
            item for item in merged.get("childChains") or [] if item.get("name") in wanted
        ]
    if args.enable_alerting:
        merged["enable_alerting"] = True
    if args.from_block is not None:
        merged["from_block"] = args.from_block
    if args.to_block is not None:
        merged["to_block"] = args.to_block
    if args.timeout_seconds is not None:
        merged["timeout_seconds"] = args.timeout_seconds
    if args.slack_token:
        merged["slack"]["token"] = args.slack_token
    if args.slack_channel:
        merged["slack"]["channel"] = args.slack_channel

    return build_service_config(merged)


def main() -> int:
    args = parse_args()
    try:
        config = merged_config_from_cli(args)
        validate_config(config)
    except (OSError, ValueError) as exc:
        print("[ERROR] Invalid configuration: %s" % exc, flush=True)
        return 2

    service = MonitoringService(config)
    return service.run()


if __name__ == "__main__":
    raise SystemExit(main())
