"""
Mint transaction execution with calling-convention fallback.
"""

from loguru import logger

from minter.evm.errors import classify_error, describe_error
from minter.evm.models import (
    ErrorKind,
    MintAttempt,
    MintFailure,
    MintResult,
    MintSuccess,
    MintVariant,
    WalletInfo,
)


def short_hash(tx_hash: str) -> str:
    return f"{tx_hash[:6]}...{tx_hash[-4:]}"


class MintExecutor:
    """
    Submits single-unit mints and classifies the outcome.

    A call-revert on submission is retried once with the other calling
    convention using the same fee parameters.
    """

    def __init__(self, client, explorer_url: str = "", allow_fallback: bool = True, log=None):
        """
        Initialize the mint executor.

        Args:
            client: Chain client exposing send_mint() and wait_for_receipt()
            explorer_url: Block explorer prefix for transaction links
            allow_fallback: Whether a revert triggers the alternate variant
            log: Logger to use, defaults to loguru's logger
        """
        self.client = client
        self.explorer_url = explorer_url
        self.allow_fallback = allow_fallback
        self.log = log or logger

    async def execute(
        self,
        contract_address: str,
        wallet: WalletInfo,
        gas_limit: int,
        max_fee_per_gas: int,
        variant: MintVariant,
        price: int,
        max_priority_fee_per_gas: int
    ) -> MintResult:
        """
        Mints one unit to the wallet's own address.

        Returns:
            MintSuccess once mined with status 1, otherwise MintFailure
        """
        attempt = MintAttempt(
            contract_address=contract_address,
            wallet_address=wallet.address,
            variant=variant,
            gas_limit=gas_limit,
            max_fee_per_gas=max_fee_per_gas,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            price=price
        )
        tried = set()
        self.log.info(f"Wallet {wallet.address} minting 1 NFT ({variant.value})")

        while True:
            tried.add(attempt.variant)
            try:
                tx_hash = await self._submit(attempt, wallet)
            except Exception as e:
                kind = classify_error(e)
                alternate = attempt.variant.alternate()
                if kind != ErrorKind.CALL_REVERTED or not self.allow_fallback or alternate in tried:
                    return self._failure(attempt, kind, e)

                self.log.warning(f"Call reverted with {attempt.variant.value}, retrying with {alternate.value}")
                attempt = attempt.model_copy(update={"variant": alternate})
                continue

            return await self._confirm(attempt, tx_hash)

    async def _submit(self, attempt: MintAttempt, wallet: WalletInfo) -> str:
        return await self.client.send_mint(
            contract_address=attempt.contract_address,
            wallet=wallet,
            variant=attempt.variant,
            gas_limit=attempt.gas_limit,
            max_fee_per_gas=attempt.max_fee_per_gas,
            max_priority_fee_per_gas=attempt.max_priority_fee_per_gas,
            value=attempt.price * attempt.quantity
        )

    async def _confirm(self, attempt: MintAttempt, tx_hash: str) -> MintResult:
        explorer_link = self.explorer_url + tx_hash
        self.log.success(f"Mint transaction sent! [{short_hash(tx_hash)}]")
        self.log.info(explorer_link)

        try:
            receipt = await self.client.wait_for_receipt(tx_hash)
        except Exception as e:
            self.log.error(f"Error waiting for receipt of {tx_hash}: {str(e)}")
            return MintFailure(
                reason=f"Receipt not available: {str(e)[:50]}",
                kind=ErrorKind.OTHER,
                variant=attempt.variant,
                raw=repr(e),
                tx_hash=tx_hash
            )

        block_number = receipt.get("blockNumber")
        if receipt.get("status") != 1:
            self.log.error(f"Transaction {short_hash(tx_hash)} failed in block [{block_number}]")
            return MintFailure(
                reason=f"Transaction reverted in block {block_number}",
                kind=ErrorKind.RECEIPT_FAILED,
                variant=attempt.variant,
                raw=str(dict(receipt)),
                tx_hash=tx_hash
            )

        self.log.success(f"Transaction confirmed in block [{block_number}]")
        return MintSuccess(
            tx_hash=tx_hash,
            block_number=block_number,
            gas_used=receipt.get("gasUsed", 0),
            effective_gas_price=receipt.get("effectiveGasPrice", 0),
            variant=attempt.variant,
            explorer_url=explorer_link
        )

    def _failure(self, attempt: MintAttempt, kind: ErrorKind, error: Exception) -> MintFailure:
        reason = describe_error(kind, error)
        self.log.error(f"{reason} ({attempt.variant.value}): {str(error)}")
        return MintFailure(
            reason=reason,
            kind=kind,
            variant=attempt.variant,
            raw=str(error)
        )
