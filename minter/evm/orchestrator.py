"""
Sequential multi-wallet mint orchestration.
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, List, Optional
from loguru import logger
from web3 import Web3

from minter.config import UNIT_DELAY_SECONDS, WALLET_DELAY_SECONDS
from minter.evm.balance_check import check_balance
from minter.evm.models import (
    ErrorKind,
    FeeQuote,
    MintFailure,
    MintPlan,
    RunReport,
    WalletInfo,
    WalletReport,
)


class MintOrchestrator:
    """
    Drives a mint run: for each wallet in order, preflight the balance, then
    mint the requested units one at a time with pacing in between.

    Nothing runs concurrently. A failed unit stops the remaining units for
    that wallet only; the next wallet still gets its turn.
    """

    def __init__(
        self,
        client,
        executor,
        unit_delay: float = UNIT_DELAY_SECONDS,
        wallet_delay: float = WALLET_DELAY_SECONDS,
        symbol: str = "ETH",
        log=None
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Chain client used for balance reads
            executor: MintExecutor for single-unit mints
            unit_delay: Seconds between units of the same wallet
            wallet_delay: Seconds between wallets
            symbol: Native currency symbol for log output
            log: Logger to use, defaults to loguru's logger
        """
        self.client = client
        self.executor = executor
        self.unit_delay = unit_delay
        self.wallet_delay = wallet_delay
        self.symbol = symbol
        self.log = log or logger

    async def run(
        self,
        plan: MintPlan,
        wallets: List[WalletInfo],
        cancel_event: Optional[asyncio.Event] = None
    ) -> RunReport:
        """
        Mints plan.mint_amount units from every wallet.

        Args:
            plan: Mint parameters shared by all wallets
            wallets: Ordered wallets to mint from
            cancel_event: When set, no further unit or wallet is started

        Returns:
            RunReport with per-wallet outcomes
        """
        report = RunReport()
        variant = plan.variant

        self.log.info(
            f"Starting mint run on {plan.contract_address} with {len(wallets)} wallet(s)",
            extra={"mint_amount": plan.mint_amount, "gas_limit": plan.gas_limit, "variant": variant.value}
        )

        for index, wallet in enumerate(wallets):
            if _is_set(cancel_event):
                break

            wallet_report = WalletReport(wallet_id=wallet.id, address=wallet.address)
            report.wallets.append(wallet_report)

            variant = await self._run_wallet(plan, wallet, variant, wallet_report, cancel_event)

            if index < len(wallets) - 1 and not _is_set(cancel_event):
                await asyncio.sleep(self.wallet_delay)

        if _is_set(cancel_event):
            report.cancelled = True
            self.log.warning("Mint run cancelled, remaining mints were not started")

        report.completed_at = datetime.now()
        self.log.success(
            f"Minting complete: {report.total_successes} succeeded, "
            f"{report.total_failures} failed across {len(wallets)} wallet(s)"
        )
        return report

    async def _run_wallet(
        self,
        plan: MintPlan,
        wallet: WalletInfo,
        variant,
        wallet_report: WalletReport,
        cancel_event: Optional[asyncio.Event] = None
    ):
        try:
            balance = await check_balance(
                self.client,
                wallet.address,
                plan.price,
                plan.mint_amount,
                plan.max_fee_per_gas,
                plan.gas_limit,
                plan.gas_per_unit
            )
        except Exception as e:
            self.log.error(f"Wallet {wallet.id} ({wallet.address}) balance check failed: {str(e)}")
            wallet_report.skipped_reason = f"Balance check failed: {str(e)}"
            return variant

        if not balance.sufficient:
            self.log.error(f"Wallet {wallet.id} ({wallet.address}) has insufficient balance")
            self.log.info(f"Required: {Web3.from_wei(balance.required, 'ether')} {self.symbol}")
            self.log.info(f"Current balance: {Web3.from_wei(balance.balance, 'ether')} {self.symbol}")
            wallet_report.skipped_reason = "Insufficient balance"
            return variant

        self.log.info(f"Using wallet {wallet.id} ({wallet.address}) to mint {plan.mint_amount} NFT(s)")

        for unit in range(1, plan.mint_amount + 1):
            if _is_set(cancel_event):
                break

            self.log.info(f"Minting {unit}/{plan.mint_amount}...")
            result = await self._execute_unit(plan, wallet, variant)
            wallet_report.attempts += 1

            if not result.ok:
                wallet_report.failures += 1
                if result.tx_hash:
                    wallet_report.tx_hashes.append(result.tx_hash)
                self.log.error(f"Wallet {wallet.id} mint {unit} failed: {result.reason}")
                if result.raw:
                    self.log.debug(f"Raw error: {result.raw}")
                break

            wallet_report.successes += 1
            wallet_report.tx_hashes.append(result.tx_hash)
            self.log.success(f"Wallet {wallet.id} mint {unit} succeeded!")

            if result.variant != variant:
                self.log.info(f"Switching to {result.variant.value} for remaining mints")
                variant = result.variant

            if unit < plan.mint_amount and not _is_set(cancel_event):
                await asyncio.sleep(self.unit_delay)

        return variant

    async def _execute_unit(self, plan: MintPlan, wallet: WalletInfo, variant):
        try:
            return await self.executor.execute(
                plan.contract_address,
                wallet,
                plan.gas_limit,
                plan.max_fee_per_gas,
                variant,
                plan.price,
                plan.max_priority_fee_per_gas
            )
        except Exception as e:
            self.log.error(f"Unexpected error minting from wallet {wallet.id}: {str(e)}")
            return MintFailure(
                reason=f"Unexpected error: {str(e)[:50]}",
                kind=ErrorKind.OTHER,
                variant=variant,
                raw=repr(e)
            )

    async def run_immediate(
        self,
        plan: MintPlan,
        wallets: List[WalletInfo],
        cancel_event: Optional[asyncio.Event] = None
    ) -> RunReport:
        return await self.run(plan, wallets, cancel_event=cancel_event)

    async def run_scheduled(
        self,
        plan: MintPlan,
        wallets: List[WalletInfo],
        monitor,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
        fee_source: Optional[Callable[[], Awaitable[FeeQuote]]] = None
    ) -> Optional[RunReport]:
        """
        Waits for the sale window via monitor, then runs the same per-wallet loop.

        When plan.use_contract_price is set, the price observed at opening
        replaces plan.price. When fee_source is given, it is awaited at
        opening and its quote replaces the plan's fee bid, so the balance
        preflight and every mint use fees read after the wait.

        Returns:
            RunReport, or None if monitoring was cancelled or timed out
        """
        async def on_open(price: int) -> RunReport:
            updates = {}
            if plan.use_contract_price:
                updates["price"] = price
            if fee_source is not None:
                quote = await fee_source()
                updates["max_fee_per_gas"] = quote.max_fee_per_gas
                updates["max_priority_fee_per_gas"] = quote.max_priority_fee_per_gas
            run_plan = plan.model_copy(update=updates) if updates else plan
            return await self.run(run_plan, wallets, cancel_event=cancel_event)

        self.log.info("Waiting for the sale window to open")
        return await monitor.wait_for_open(on_open, cancel_event=cancel_event, timeout=timeout)


def _is_set(event: Optional[asyncio.Event]) -> bool:
    return event is not None and event.is_set()
