"""
Shared fixtures: an in-memory chain client and wallets for mint tests.
"""

from typing import Dict, List, Optional

import pytest
from web3 import Web3
from web3.exceptions import ContractLogicError

from minter.evm.models import WalletInfo


def gwei(amount) -> int:
    return Web3.to_wei(amount, "gwei")


def ether(amount) -> int:
    return Web3.to_wei(amount, "ether")


class FakeChainClient:
    """
    Records every call and replays scripted outcomes instead of talking to a node.
    """

    def __init__(self, balances: Optional[Dict[str, int]] = None, fee_data=(gwei(10), gwei(30))):
        self.balances = balances or {}
        self.fee_data = fee_data
        self.fee_failures = 0
        self.fee_calls = 0

        # address -> outcomes consumed in order; an exception is raised, None succeeds
        self.send_outcomes: Dict[str, List[Optional[Exception]]] = {}
        # every submission with these variants reverts
        self.revert_variants = set()
        self.send_calls: List[dict] = []

        self.failed_receipts = set()
        self.receipt_error: Optional[Exception] = None

        # probe id -> raw config or exception
        self.sale_configs: Dict[Optional[int], object] = {}
        self.sale_config_calls: List[Optional[int]] = []
        self.closed = False

    async def get_balance(self, address: str) -> int:
        return self.balances.get(address, 0)

    async def get_fee_data(self):
        self.fee_calls += 1
        if self.fee_calls <= self.fee_failures:
            raise ConnectionError("RPC unavailable")
        return self.fee_data

    async def send_mint(self, contract_address, wallet, variant, gas_limit,
                        max_fee_per_gas, max_priority_fee_per_gas, value) -> str:
        self.send_calls.append({
            "contract_address": contract_address,
            "address": wallet.address,
            "variant": variant,
            "gas_limit": gas_limit,
            "max_fee_per_gas": max_fee_per_gas,
            "max_priority_fee_per_gas": max_priority_fee_per_gas,
            "value": value,
        })

        if variant in self.revert_variants:
            raise ContractLogicError("execution reverted: Public mint is not active")

        outcomes = self.send_outcomes.get(wallet.address)
        if outcomes:
            outcome = outcomes.pop(0)
            if outcome is not None:
                raise outcome

        return "0x" + format(len(self.send_calls), "064x")

    async def wait_for_receipt(self, tx_hash: str) -> dict:
        if self.receipt_error is not None:
            raise self.receipt_error
        return {
            "transactionHash": tx_hash,
            "status": 0 if tx_hash in self.failed_receipts else 1,
            "blockNumber": 1000 + len(self.send_calls),
            "gasUsed": 85000,
            "effectiveGasPrice": gwei(52),
        }

    async def get_sale_config(self, contract_address: str, probe_id=None):
        self.sale_config_calls.append(probe_id)
        if probe_id not in self.sale_configs:
            raise ContractLogicError("execution reverted")
        outcome = self.sale_configs[probe_id]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def get_collection_info(self, contract_address: str) -> dict:
        return {"name": "Test Collection", "symbol": "TEST"}

    async def close(self):
        self.closed = True

    def calls_for(self, address: str) -> List[dict]:
        return [call for call in self.send_calls if call["address"] == address]


CONTRACT = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def client():
    return FakeChainClient()


@pytest.fixture
def wallet_a():
    return WalletInfo(id=1, address="0x00000000000000000000000000000000000000aA", private_key="0x01")


@pytest.fixture
def wallet_b():
    return WalletInfo(id=2, address="0x00000000000000000000000000000000000000bB", private_key="0x02")
