from typing import Any, Dict, List


def _param(name: str, type_: str, indexed: bool = False) -> Dict[str, Any]:
    return {"indexed": indexed, "internalType": type_, "name": name, "type": type_}


def _tuple(name: str, components: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "components": components,
        "internalType": "struct",
        "name": name,
        "type": "tuple",
    }


def _global_state(bytes32_name: str, u64_name: str) -> Dict[str, Any]:
    return _tuple(
        "globalState",
        [
            {"internalType": "bytes32[2]", "name": bytes32_name, "type": "bytes32[2]"},
            {"internalType": "uint64[2]", "name": u64_name, "type": "uint64[2]"},
        ],
    )


def _bold_assertion_state(prefix: str) -> Dict[str, Any]:
    return _tuple(
        prefix,
        [
            _global_state("globalStateBytes32Vals", "globalStateU64Vals"),
            _param("%sMachineStatus" % prefix, "uint8"),
            _param("%sEndHistoryRoot" % prefix, "bytes32"),
        ],
    )


def _classic_execution_state(name: str) -> Dict[str, Any]:
    return _tuple(
        name,
        [
            _global_state("bytes32Vals", "u64Vals"),
            _param("machineStatus", "uint8"),
        ],
    )


ASSERTION_CREATED_EVENT: Dict[str, Any] = {
    "anonymous": False,
    "name": "AssertionCreated",
    "type": "event",
    "inputs": [
        _param("assertionHash", "bytes32", indexed=True),
        _param("parentAssertionHash", "bytes32", indexed=True),
        dict(
            _tuple(
                "assertion",
                [
                    _tuple(
                        "beforeStateData",
                        [
                            _param("prevPrevAssertionHash", "bytes32"),
                            _param("sequencerBatchAcc", "bytes32"),
                            _tuple(
                                "configData",
                                [
                                    _param("wasmModuleRoot", "bytes32"),
                                    _param("requiredStake", "uint256"),
                                    _param("challengeManager", "address"),
                                    _param("confirmPeriodBlocks", "uint64"),
                                    _param("nextInboxPosition", "uint64"),
                                ],
                            ),
                        ],
                    ),
                    _bold_assertion_state("beforeState"),
                    _bold_assertion_state("afterState"),
                ],
            ),
            indexed=False,
        ),
        _param("afterInboxBatchAcc", "bytes32"),
        _param("inboxMaxCount", "uint256"),
        _param("wasmModuleRoot", "bytes32"),
        _param("requiredStake", "uint256"),
        _param("challengeManager", "address"),
        _param("confirmPeriodBlocks", "uint64"),
    ],
}

ASSERTION_CONFIRMED_EVENT: Dict[str, Any] = {
    "anonymous": False,
    "name": "AssertionConfirmed",
    "type": "event",
    "inputs": [
        _param("assertionHash", "bytes32", indexed=True),
        _param("blockHash", "bytes32"),
        _param("sendRoot", "bytes32"),
    ],
}

NODE_CREATED_EVENT: Dict[str, Any] = {
    "anonymous": False,
    "name": "NodeCreated",
    "type": "event",
    "inputs": [
        _param("nodeNum", "uint64", indexed=True),
        _param("parentNodeHash", "bytes32", indexed=True),
        _param("nodeHash", "bytes32", indexed=True),
        _param("executionHash", "bytes32"),
        dict(
            _tuple(
                "assertion",
                [
                    _classic_execution_state("beforeState"),
                    _classic_execution_state("afterState"),
                    _param("numBlocks", "uint64"),
                ],
            ),
            indexed=False,
        ),
        _param("afterInboxBatchAcc", "bytes32"),
        _param("wasmModuleRoot", "bytes32"),
        _param("inboxMaxCount", "uint256"),
    ],
}

NODE_CONFIRMED_EVENT: Dict[str, Any] = {
    "anonymous": False,
    "name": "NodeConfirmed",
    "type": "event",
    "inputs": [
        _param("nodeNum", "uint64", indexed=True),
        _param("blockHash", "bytes32"),
        _param("sendRoot", "bytes32"),
    ],
}

ROLLUP_ABI: List[Dict[str, Any]] = [
    {
        "inputs": [],
        "name": "validatorWhitelistDisabled",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
]

BOLD_ABI: List[Dict[str, Any]] = [
    {
        "inputs": [],
        "name": "genesisAssertionHash",
        "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "baseStake",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


def creation_event_for(is_bold: bool) -> Dict[str, Any]:
    return ASSERTION_CREATED_EVENT if is_bold else NODE_CREATED_EVENT


def confirmation_event_for(is_bold: bool) -> Dict[str, Any]:
    return ASSERTION_CONFIRMED_EVENT if is_bold else NODE_CONFIRMED_EVENT
