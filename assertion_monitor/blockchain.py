from typing import Any, Dict, List, Optional

from eth_utils import event_abi_to_log_topic
from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, BlockNotFound, ContractLogicError

from .abi import BOLD_ABI, ROLLUP_ABI
from .config import ChainConfig
from .events import BlockRef


class ChainClient:
    """Read-only view of one chain through a JSON-RPC endpoint."""

    def __init__(self, rpc_url: str, timeout_seconds: float = 30.0, name: str = "") -> None:
        self.rpc_url = rpc_url
        self.name = name or rpc_url
        self.w3 = Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_seconds})
        )

    def get_block_number(self) -> int:
        return int(self.w3.eth.block_number)

    def get_latest_block(self) -> BlockRef:
        return BlockRef.from_rpc(self.w3.eth.get_block("latest"))

    def get_block_by_number(self, number: int) -> Optional[BlockRef]:
        try:
            block = self.w3.eth.get_block(int(number))
        except BlockNotFound:
            return None
        return BlockRef.from_rpc(block)

    def get_block_by_hash(self, block_hash: str) -> Optional[BlockRef]:
        try:
            block = self.w3.eth.get_block(block_hash)
        except BlockNotFound:
            return None
        return BlockRef.from_rpc(block)

    def get_logs(
        self, address: str, event: Dict[str, Any], from_block: int, to_block: int
    ) -> List[Any]:
        checksum = Web3.to_checksum_address(address)
        contract = self.w3.eth.contract(address=checksum, abi=[event])
        decoder = getattr(contract.events, event["name"])()
        topic = "0x" + event_abi_to_log_topic(event).hex()
        raw_logs = self.w3.eth.get_logs(
            {
                "address": checksum,
                "fromBlock": int(from_block),
                "toBlock": int(to_block),
                "topics": [topic],
            }
        )
        return [decoder.process_log(log) for log in raw_logs]

    def is_bold_enabled(self, rollup_address: str) -> bool:
        contract = self._contract(rollup_address, BOLD_ABI)
        try:
            genesis_hash = contract.functions.genesisAssertionHash().call()
        except (ContractLogicError, BadFunctionCallOutput) as exc:
            # Classic rollups do not expose genesisAssertionHash.
            print(
                "[INFO] %s: genesisAssertionHash unavailable (%s), treating rollup as Classic"
                % (self.name, exc),
                flush=True,
            )
            return False
        return bool(genesis_hash)

    def validator_whitelist_disabled(self, rollup_address: str) -> bool:
        contract = self._contract(rollup_address, ROLLUP_ABI)
        return bool(contract.functions.validatorWhitelistDisabled().call())

    def base_stake(self, rollup_address: str) -> int:
        contract = self._contract(rollup_address, BOLD_ABI)
        return int(contract.functions.baseStake().call())

    def _contract(self, address: str, abi: List[Dict[str, Any]]) -> Any:
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)


def create_parent_client(chain: ChainConfig, timeout_seconds: float = 30.0) -> ChainClient:
    return ChainClient(
        chain.parent_rpc_url,
        timeout_seconds=timeout_seconds,
        name="%s parent" % chain.name,
    )


def create_child_client(chain: ChainConfig, timeout_seconds: float = 30.0) -> ChainClient:
    return ChainClient(
        chain.orbit_rpc_url,
        timeout_seconds=timeout_seconds,
        name=chain.name,
    )
