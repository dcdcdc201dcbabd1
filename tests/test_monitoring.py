import dataclasses
import unittest

from assertion_monitor.alerts import (
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
from assertion_monitor.chain_state import ChainStateSnapshot
from assertion_monitor.config import ChainConfig, MonitorConfig
from assertion_monitor.events import BlockRef, ConfirmationEvent
from assertion_monitor.monitoring import (
    analyze_assertion_events,
    collect_chain_alerts,
    generate_conditions_for_alerts,
)

NOW = 1672531200.0

CHAIN = ChainConfig(
    name="Test Chain",
    chain_id=123456,
    parent_chain_id=1,
    confirm_period_blocks=100,
    parent_rpc_url="http://parent.invalid",
    orbit_rpc_url="http://child.invalid",
    rollup="0x1234567890123456789012345678901234567890",
)

CONFIG = MonitorConfig(
    challenge_period_seconds=6.4 * 24 * 60 * 60,
    recent_activity_seconds=4 * 60 * 60,
    validator_afk_blocks=50,
)


def block(number: int, age_seconds: float, label: str) -> BlockRef:
    return BlockRef(
        number=number,
        timestamp=int(NOW - age_seconds),
        hash="0x%s" % label,
        parent_hash="0x0000",
    )


def base_chain_state() -> ChainStateSnapshot:
    return ChainStateSnapshot(
        child_current_block=block(2000, 50, "5678"),
        child_latest_created_block=block(900, 3600, "abcd"),
        child_latest_confirmed_block=block(850, 7200, "ef01"),
        parent_current_block=block(150, 0, "aa01"),
        parent_block_at_creation=block(140, 3600, "aa02"),
        parent_block_at_confirmation=block(130, 7200, "aa03"),
    )


def healthy_chain_state() -> ChainStateSnapshot:
    return dataclasses.replace(
        base_chain_state(),
        child_latest_created_block=block(1980, 1000, "abcd"),
        child_latest_confirmed_block=block(1950, 7200, "ef01"),
    )


def confirmation_event() -> ConfirmationEvent:
    return ConfirmationEvent(block_number=130, block_hash="0xef01", event_name="AssertionConfirmed")


def analyze(chain_state, whitelist_disabled=False, is_bold=True):
    return analyze_assertion_events(
        chain_state, CHAIN, whitelist_disabled, is_bold=is_bold, config=CONFIG, now=NOW
    )


class TestBoldChainAlerts(unittest.TestCase):
    def test_healthy_chain_has_no_alerts(self) -> None:
        self.assertEqual(analyze(healthy_chain_state()), [])

    def test_missing_creation_block_is_the_only_alert(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(), child_latest_created_block=None
        )
        self.assertEqual(analyze(chain_state), [NO_CREATION_EVENTS])

    def test_activity_without_recent_creation(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_latest_created_block=block(900, 5 * 60 * 60, "abcd"),
        )
        self.assertIn(CHAIN_ACTIVITY_WITHOUT_ASSERTIONS, analyze(chain_state))

    def test_recent_creation_suppresses_activity_alert(self) -> None:
        alerts = analyze(base_chain_state())
        self.assertNotIn(CHAIN_ACTIVITY_WITHOUT_ASSERTIONS, alerts)

    def test_missing_confirmed_block(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(), child_latest_confirmed_block=None
        )
        alerts = analyze(chain_state)
        # Once for the missing block, once for the unconfirmed creation.
        self.assertEqual(alerts.count(NO_CONFIRMATION_EVENTS), 2)
        self.assertNotIn(NO_CONFIRMATION_BLOCKS_WITH_CONFIRMATION_EVENTS, alerts)

    def test_confirmation_delay_uses_parent_block_gap(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_latest_confirmed_block=block(1950, 7200, "ef01"),
            parent_current_block=block(300, 0, "aa01"),
            parent_block_at_confirmation=block(100, 7200, "aa03"),
        )
        self.assertIn(CONFIRMATION_DELAY, analyze(chain_state))

    def test_no_confirmation_delay_when_parent_gap_is_zero(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_latest_confirmed_block=block(1800, 7200, "ef01"),
            parent_current_block=block(200, 0, "aa01"),
            parent_block_at_confirmation=block(200, 7200, "aa03"),
        )
        self.assertNotIn(CONFIRMATION_DELAY, analyze(chain_state))

    def test_gap_equal_to_threshold_does_not_alert(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            parent_current_block=block(250, 0, "aa01"),
            parent_block_at_confirmation=block(100, 7200, "aa03"),
        )
        self.assertNotIn(CONFIRMATION_DELAY, analyze(chain_state))

    def test_block_zero_is_a_real_confirmation_height(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            parent_current_block=block(151, 0, "aa01"),
            parent_block_at_confirmation=block(0, 7200, "aa03"),
        )
        conditions = generate_conditions_for_alerts(
            CHAIN, chain_state, True, config=CONFIG, now=NOW
        )
        self.assertEqual(conditions.parent_blocks_since_confirmation, 151)
        self.assertIn(CONFIRMATION_DELAY, analyze(chain_state))

    def test_creation_stuck_in_challenge_period(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_latest_created_block=block(900, 7 * 24 * 60 * 60, "abcd"),
        )
        alerts = analyze(chain_state)
        self.assertIn(CREATION_EVENT_STUCK, alerts)
        self.assertNotIn(NON_BOLD_NO_RECENT_CREATION, alerts)

    def test_multiple_conditions_fire_together(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_latest_created_block=block(1800, 5 * 60 * 60, "abcd"),
            child_latest_confirmed_block=block(1700, 7200, "ef01"),
            parent_current_block=block(300, 0, "aa01"),
            parent_block_at_confirmation=block(100, 7200, "aa03"),
        )
        alerts = analyze(chain_state)
        self.assertIn(CHAIN_ACTIVITY_WITHOUT_ASSERTIONS, alerts)
        self.assertIn(CONFIRMATION_DELAY, alerts)

    def test_whitelist_flag_is_reported_when_asserted(self) -> None:
        alerts = analyze(base_chain_state(), whitelist_disabled=True)
        self.assertIn(VALIDATOR_WHITELIST_DISABLED, alerts)
        self.assertNotIn(VALIDATOR_WHITELIST_DISABLED, analyze(base_chain_state()))

    def test_confirmation_event_without_confirmed_block(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_latest_confirmed_block=None,
            recent_confirmation_event=confirmation_event(),
        )
        alerts = analyze(chain_state)
        self.assertIn(NO_CONFIRMATION_EVENTS, alerts)
        self.assertIn(NO_CONFIRMATION_BLOCKS_WITH_CONFIRMATION_EVENTS, alerts)


class TestClassicChainAlerts(unittest.TestCase):
    def test_healthy_chain_has_no_alerts(self) -> None:
        self.assertEqual(analyze(healthy_chain_state(), is_bold=False), [])

    def test_missing_creation_block(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(), child_latest_created_block=None
        )
        alerts = analyze(chain_state, is_bold=False)
        self.assertEqual(alerts[0], NO_CREATION_EVENTS)
        self.assertIn(NON_BOLD_NO_RECENT_CREATION, alerts)

    def test_no_recent_creation(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_latest_created_block=block(900, 5 * 60 * 60, "abcd"),
        )
        self.assertIn(NON_BOLD_NO_RECENT_CREATION, analyze(chain_state, is_bold=False))

    def test_old_creation_without_new_activity_is_quiet(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_current_block=block(900, 50, "5678"),
            child_latest_created_block=block(900, 5 * 60 * 60, "abcd"),
        )
        self.assertNotIn(NON_BOLD_NO_RECENT_CREATION, analyze(chain_state, is_bold=False))

    def test_challenge_period_is_not_checked(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_latest_created_block=block(900, 7 * 24 * 60 * 60, "abcd"),
        )
        alerts = analyze(chain_state, is_bold=False)
        self.assertNotIn(CREATION_EVENT_STUCK, alerts)
        self.assertIn(NON_BOLD_NO_RECENT_CREATION, alerts)

    def test_extreme_conditions(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_current_block=block(7000, 50, "5678"),
            child_latest_created_block=block(900, 5 * 60 * 60, "abcd"),
            child_latest_confirmed_block=block(1800, 7200, "ef01"),
            parent_current_block=block(300, 0, "aa01"),
            parent_block_at_confirmation=block(100, 7200, "aa03"),
        )
        alerts = analyze(chain_state, is_bold=False)
        self.assertIn(CHAIN_ACTIVITY_WITHOUT_ASSERTIONS, alerts)
        self.assertIn(NON_BOLD_NO_RECENT_CREATION, alerts)
        self.assertIn(CONFIRMATION_DELAY, alerts)

    def test_confirmation_event_without_confirmed_block(self) -> None:
        chain_state = dataclasses.replace(
            base_chain_state(),
            child_latest_confirmed_block=None,
            recent_confirmation_event=ConfirmationEvent(
                block_number=130, block_hash="0xef01", event_name="NodeConfirmed"
            ),
        )
        alerts = analyze(chain_state, is_bold=False)
        self.assertIn(NO_CONFIRMATION_EVENTS, alerts)
        self.assertIn(NO_CONFIRMATION_BLOCKS_WITH_CONFIRMATION_EVENTS, alerts)


class TestCollectChainAlerts(unittest.TestCase):
    def collect(self, chain_state, is_bold):
        return collect_chain_alerts(chain_state, CHAIN, is_bold, config=CONFIG, now=NOW)

    def test_low_base_stake_requires_bold_and_both_flags(self) -> None:
        for is_bold in (True, False):
            for whitelist_disabled in (True, False):
                for stake_low in (True, False):
                    chain_state = dataclasses.replace(
                        healthy_chain_state(),
                        is_validator_whitelist_disabled=whitelist_disabled,
                        is_base_stake_below_threshold=stake_low,
                    )
                    alerts = self.collect(chain_state, is_bold)
                    expected = is_bold and whitelist_disabled and stake_low
                    self.assertEqual(BOLD_LOW_BASE_STAKE in alerts, expected)

    def test_whitelist_alert_only_for_classic_chains(self) -> None:
        chain_state = dataclasses.replace(
            healthy_chain_state(), is_validator_whitelist_disabled=True
        )
        self.assertNotIn(VALIDATOR_WHITELIST_DISABLED, self.collect(chain_state, True))
        self.assertIn(VALIDATOR_WHITELIST_DISABLED, self.collect(chain_state, False))


if __name__ == "__main__":
    unittest.main()
