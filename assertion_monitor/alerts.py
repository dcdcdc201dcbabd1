from typing import Dict

NO_CREATION_EVENTS = "NO_CREATION_EVENTS"
CHAIN_ACTIVITY_WITHOUT_ASSERTIONS = "CHAIN_ACTIVITY_WITHOUT_ASSERTIONS"
NO_CONFIRMATION_EVENTS = "NO_CONFIRMATION_EVENTS"
CONFIRMATION_DELAY = "CONFIRMATION_DELAY"
CREATION_EVENT_STUCK = "CREATION_EVENT_STUCK"
NON_BOLD_NO_RECENT_CREATION = "NON_BOLD_NO_RECENT_CREATION"
VALIDATOR_WHITELIST_DISABLED = "VALIDATOR_WHITELIST_DISABLED"
NO_CONFIRMATION_BLOCKS_WITH_CONFIRMATION_EVENTS = (
    "NO_CONFIRMATION_BLOCKS_WITH_CONFIRMATION_EVENTS"
)
BOLD_LOW_BASE_STAKE = "BOLD_LOW_BASE_STAKE"

ALERT_MESSAGES: Dict[str, str] = {
    NO_CREATION_EVENTS: "No assertion creation events found",
    CHAIN_ACTIVITY_WITHOUT_ASSERTIONS: (
        "Chain activity detected but no assertions created recently"
    ),
    NO_CONFIRMATION_EVENTS: "No assertion confirmation events found",
    CONFIRMATION_DELAY: "Confirmation period exceeded",
    CREATION_EVENT_STUCK: "Assertion event stuck in challenge period",
    NON_BOLD_NO_RECENT_CREATION: (
        "No recent node creation events detected for non-BOLD chain"
    ),
    VALIDATOR_WHITELIST_DISABLED: "Validator whitelist disabled",
    NO_CONFIRMATION_BLOCKS_WITH_CONFIRMATION_EVENTS: (
        "No assertion confirmation blocks found but confirmation events detected"
    ),
    BOLD_LOW_BASE_STAKE: (
        "BoLD chain has low base stake (below the configured minimum) "
        "with the validator whitelist disabled"
    ),
}


def describe_alert(key: str) -> str:
    message = ALERT_MESSAGES.get(key)
    if message is None:
        return key
    return "%s (%s)" % (message, key)
