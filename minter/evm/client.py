"""
Async EVM client used by the mint components.
"""

from typing import Any, Dict, Optional, Tuple
from loguru import logger
from web3 import AsyncWeb3
from web3.providers import AsyncHTTPProvider

from minter.config import RECEIPT_TIMEOUT
from minter.evm.abi import MINT_ABI
from minter.evm.models import MintVariant, WalletInfo


class ChainClient:
    """
    Thin wrapper around AsyncWeb3 exposing the reads and writes a mint run needs.
    """

    def __init__(self, rpc_url: str, chain_id: Optional[int] = None, receipt_timeout: int = RECEIPT_TIMEOUT):
        """
        Initialize the chain client.

        Args:
            rpc_url: HTTP RPC endpoint
            chain_id: Chain id used when signing; fetched from the node if omitted
            receipt_timeout: Seconds to wait for a transaction to be mined
        """
        self.rpc_url = rpc_url
        self.w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout

        logger.info(f"ChainClient initialized for {rpc_url}")

    async def close(self):
        await self.w3.provider.disconnect()

    def contract(self, contract_address: str):
        return self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address),
            abi=MINT_ABI
        )

    async def get_balance(self, address: str) -> int:
        """Returns the native balance of address in wei."""
        return await self.w3.eth.get_balance(AsyncWeb3.to_checksum_address(address))

    async def get_fee_data(self) -> Tuple[int, int]:
        """
        Reads the fee market.

        Returns:
            Tuple of (base fee of the latest block, suggested gas price) in wei
        """
        block = await self.w3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            raise ValueError(f"Block {block.get('number')} has no baseFeePerGas")
        gas_price = await self.w3.eth.gas_price
        return int(base_fee), int(gas_price)

    async def send_mint(
        self,
        contract_address: str,
        wallet: WalletInfo,
        variant: MintVariant,
        gas_limit: int,
        max_fee_per_gas: int,
        max_priority_fee_per_gas: int,
        value: int
    ) -> str:
        """
        Simulates, signs and broadcasts a single-unit mint.

        The call is simulated with eth_call first so that business-rule
        reverts surface as ContractLogicError without spending gas.

        Returns:
            Transaction hash as a hex string
        """
        contract = self.contract(contract_address)
        sender = AsyncWeb3.to_checksum_address(wallet.address)
        function = contract.get_function_by_signature(variant.signature)(*variant.call_args(sender))

        await function.call({"from": sender, "value": value, "gas": gas_limit})

        if self.chain_id is None:
            self.chain_id = await self.w3.eth.chain_id

        nonce = await self.w3.eth.get_transaction_count(sender, "pending")
        tx = await function.build_transaction({
            "from": sender,
            "value": value,
            "gas": gas_limit,
            "maxFeePerGas": max_fee_per_gas,
            "maxPriorityFeePerGas": max_priority_fee_per_gas,
            "nonce": nonce,
            "chainId": self.chain_id,
        })

        signed = self.w3.eth.account.sign_transaction(tx, private_key=wallet.private_key)
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return self.w3.to_hex(tx_hash)

    async def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        """Blocks until tx_hash is mined and returns its receipt."""
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        return dict(receipt)

    async def get_sale_config(self, contract_address: str, probe_id: Optional[int] = None) -> Any:
        """
        Calls getConfig() or getConfig(probe_id) and returns the raw struct.
        """
        contract = self.contract(contract_address)
        if probe_id is None:
            function = contract.get_function_by_signature("getConfig()")()
        else:
            function = contract.get_function_by_signature("getConfig(uint256)")(probe_id)
        return await function.call()

    async def get_collection_info(self, contract_address: str) -> Dict[str, str]:
        """Returns the collection name and symbol, "Unknown" where unreadable."""
        contract = self.contract(contract_address)
        info = {"name": "Unknown", "symbol": "Unknown"}

        for field in info:
            try:
                info[field] = await getattr(contract.functions, field)().call()
            except Exception as e:
                logger.debug(f"Could not read {field}() from {contract_address}: {str(e)}")

        return info
