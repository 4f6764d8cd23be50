"""
Gas fee estimation for EIP-1559 chains.
"""

import asyncio
from typing import Optional
from loguru import logger
from web3 import Web3

from minter.config import (
    DEFAULT_PRIORITY_FEE_GWEI,
    FALLBACK_BASE_FEE_GWEI,
    FALLBACK_GAS_PRICE_GWEI,
    FEE_RETRY_ATTEMPTS,
    FEE_RETRY_DELAY,
)
from minter.evm.models import FeeQuote


def fallback_fee_quote() -> FeeQuote:
    """Static quote used when fee data cannot be read."""
    gas_price = Web3.to_wei(FALLBACK_GAS_PRICE_GWEI, "gwei")
    return FeeQuote(
        base_fee=Web3.to_wei(FALLBACK_BASE_FEE_GWEI, "gwei"),
        gas_price=gas_price,
        max_fee_per_gas=gas_price,
        max_priority_fee_per_gas=Web3.to_wei(DEFAULT_PRIORITY_FEE_GWEI, "gwei"),
        is_fallback=True
    )


def format_gwei(wei: int) -> str:
    return f"{Web3.from_wei(wei, 'gwei')} gwei"


class FeeOracle:
    """
    Estimates a fee bid from the latest block's base fee and the node's gas price.
    """

    def __init__(
        self,
        client,
        attempts: int = FEE_RETRY_ATTEMPTS,
        retry_delay: float = FEE_RETRY_DELAY,
        priority_fee: int = Web3.to_wei(DEFAULT_PRIORITY_FEE_GWEI, "gwei"),
        log=None
    ):
        """
        Initialize the fee oracle.

        Args:
            client: Chain client exposing get_fee_data()
            attempts: Number of reads before falling back to the static quote
            retry_delay: Seconds to wait between failed reads
            priority_fee: Priority fee to bid, in wei
            log: Logger to use, defaults to loguru's logger
        """
        self.client = client
        self.attempts = attempts
        self.retry_delay = retry_delay
        self.priority_fee = priority_fee
        self.log = log or logger

    async def estimate(self) -> FeeQuote:
        """
        Reads fee data with retries. Never raises; exhausting all attempts
        returns the fallback quote.

        Returns:
            FeeQuote with max fee = max(gas price, 2 * base fee)
        """
        for attempt in range(1, self.attempts + 1):
            try:
                base_fee, gas_price = await self.client.get_fee_data()
            except Exception as e:
                self.log.warning(f"Fee data read failed (attempt {attempt}/{self.attempts}): {str(e)}")
                if attempt < self.attempts:
                    await asyncio.sleep(self.retry_delay)
                continue

            max_fee = max(gas_price, base_fee * 2)
            quote = FeeQuote(
                base_fee=base_fee,
                gas_price=gas_price,
                max_fee_per_gas=max_fee,
                max_priority_fee_per_gas=min(self.priority_fee, max_fee)
            )
            self.log.debug(
                f"Fee estimate: base {format_gwei(base_fee)}, max {format_gwei(max_fee)}",
                extra={"base_fee": base_fee, "gas_price": gas_price, "max_fee": max_fee}
            )
            return quote

        self.log.warning("Fee data unavailable, using fallback fee quote")
        return fallback_fee_quote()

    def resolve_bid(
        self,
        quote: FeeQuote,
        max_fee_per_gas: Optional[int] = None,
        max_priority_fee_per_gas: Optional[int] = None
    ) -> FeeQuote:
        """
        Applies caller-supplied fees on top of an estimate.

        Supplied values are kept as given except for the floor check: a max
        fee below the current base fee can never be included, so it is
        raised to the base fee.

        Args:
            quote: Estimated quote
            max_fee_per_gas: Caller's max fee in wei, or None to use the estimate
            max_priority_fee_per_gas: Caller's priority fee in wei, or None

        Returns:
            The FeeQuote to bid with
        """
        max_fee = quote.max_fee_per_gas if max_fee_per_gas is None else max_fee_per_gas
        priority_fee = quote.max_priority_fee_per_gas if max_priority_fee_per_gas is None else max_priority_fee_per_gas

        if max_fee < quote.base_fee:
            self.log.warning(
                f"Max fee {format_gwei(max_fee)} is below the base fee {format_gwei(quote.base_fee)}, "
                f"raising it to the base fee"
            )
            max_fee = quote.base_fee

        if priority_fee > max_fee:
            self.log.warning(
                f"Priority fee {format_gwei(priority_fee)} exceeds max fee {format_gwei(max_fee)}"
            )

        return quote.model_copy(update={
            "max_fee_per_gas": max_fee,
            "max_priority_fee_per_gas": priority_fee,
        })
