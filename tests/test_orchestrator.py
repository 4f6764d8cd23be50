"""Multi-wallet mint sequencing."""

import asyncio

from minter.evm.fee_oracle import FeeOracle
from minter.evm.mint_executor import MintExecutor
from minter.evm.models import MintPlan, MintVariant, SaleConfig
from minter.evm.orchestrator import MintOrchestrator
from minter.evm.sale_config import SaleConfigReader
from minter.evm.sale_monitor import SaleMonitor
from tests.conftest import CONTRACT, ether, gwei

PRICE = ether("0.01")
GAS_LIMIT = 100000
MAX_FEE = gwei(55)
PLENTY = ether(10)


def make_plan(**overrides) -> MintPlan:
    fields = dict(
        contract_address=CONTRACT,
        mint_amount=2,
        gas_limit=GAS_LIMIT,
        max_fee_per_gas=MAX_FEE,
        max_priority_fee_per_gas=gwei(2),
        price=PRICE,
    )
    fields.update(overrides)
    return MintPlan(**fields)


def make_orchestrator(client) -> MintOrchestrator:
    return MintOrchestrator(client, MintExecutor(client), unit_delay=0, wallet_delay=0)


async def test_insufficient_wallet_is_skipped(client, wallet_a, wallet_b):
    client.balances = {
        wallet_a.address: PLENTY,
        wallet_b.address: 2 * PRICE + 2 * MAX_FEE * GAS_LIMIT - 1,
    }

    report = await make_orchestrator(client).run(make_plan(), [wallet_a, wallet_b])

    assert report.total_successes == 2
    assert [call["variant"] for call in client.calls_for(wallet_a.address)] == [MintVariant.FOUR_PARAM] * 2
    assert client.calls_for(wallet_b.address) == []

    skipped = report.for_wallet(wallet_b.address)
    assert skipped.attempts == 0
    assert skipped.skipped_reason == "Insufficient balance"


async def test_failed_unit_only_stops_that_wallet(client, wallet_a, wallet_b):
    client.balances = {wallet_a.address: PLENTY, wallet_b.address: PLENTY}
    client.send_outcomes[wallet_a.address] = [None, ConnectionError("connection reset by peer")]

    report = await make_orchestrator(client).run(make_plan(mint_amount=3), [wallet_a, wallet_b])

    first = report.for_wallet(wallet_a.address)
    assert first.attempts == 2
    assert first.successes == 1
    assert first.failures == 1
    assert len(client.calls_for(wallet_a.address)) == 2

    second = report.for_wallet(wallet_b.address)
    assert second.attempts == 3
    assert second.successes == 3


async def test_successful_fallback_variant_is_kept(client, wallet_a, wallet_b):
    client.balances = {wallet_a.address: PLENTY, wallet_b.address: PLENTY}
    client.revert_variants = {MintVariant.FOUR_PARAM}

    report = await make_orchestrator(client).run(make_plan(), [wallet_a, wallet_b])

    assert report.total_successes == 4
    variants = [call["variant"] for call in client.send_calls]
    # one revert then the two-param shape for every remaining mint
    assert variants == [MintVariant.FOUR_PARAM] + [MintVariant.TWO_PARAM] * 4


async def test_balance_read_error_skips_wallet(client, wallet_a, wallet_b):
    async def broken_balance(address):
        if address == wallet_a.address:
            raise ConnectionError("rpc down")
        return PLENTY

    client.get_balance = broken_balance

    report = await make_orchestrator(client).run(make_plan(mint_amount=1), [wallet_a, wallet_b])

    assert report.for_wallet(wallet_a.address).skipped_reason.startswith("Balance check failed")
    assert report.for_wallet(wallet_b.address).successes == 1


async def test_unexpected_executor_error_moves_to_next_wallet(client, wallet_a, wallet_b):
    client.balances = {wallet_a.address: PLENTY, wallet_b.address: PLENTY}

    class FlakyExecutor(MintExecutor):
        async def execute(self, contract_address, wallet, *args):
            if wallet.address == wallet_a.address:
                raise RuntimeError("signer unavailable")
            return await super().execute(contract_address, wallet, *args)

    orchestrator = MintOrchestrator(client, FlakyExecutor(client), unit_delay=0, wallet_delay=0)
    report = await orchestrator.run(make_plan(), [wallet_a, wallet_b])

    assert report.for_wallet(wallet_a.address).failures == 1
    assert report.for_wallet(wallet_a.address).attempts == 1
    assert report.for_wallet(wallet_b.address).successes == 2


async def test_scheduled_run_uses_price_seen_at_opening(client, wallet_a):
    client.balances = {wallet_a.address: PLENTY}
    client.sale_configs = {None: ((0, 2 ** 40, ether("0.02")), 100, 5)}

    monitor = SaleMonitor(SaleConfigReader(client, CONTRACT), poll_interval=0)
    plan = make_plan(mint_amount=1, use_contract_price=True)

    report = await make_orchestrator(client).run_scheduled(plan, [wallet_a], monitor)

    assert report.total_successes == 1
    assert client.send_calls[0]["value"] == ether("0.02")


async def test_scheduled_run_cancelled_returns_none(client, wallet_a):
    cancel_event = asyncio.Event()
    cancel_event.set()
    monitor = SaleMonitor(reader=None, poll_interval=0)

    report = await make_orchestrator(client).run_scheduled(make_plan(), [wallet_a], monitor, cancel_event=cancel_event)

    assert report is None
    assert client.send_calls == []


async def test_cancel_stops_remaining_units_and_wallets(client, wallet_a, wallet_b):
    client.balances = {wallet_a.address: PLENTY, wallet_b.address: PLENTY}
    cancel_event = asyncio.Event()

    class CancellingExecutor(MintExecutor):
        async def execute(self, *args):
            result = await super().execute(*args)
            cancel_event.set()
            return result

    orchestrator = MintOrchestrator(client, CancellingExecutor(client), unit_delay=0, wallet_delay=0)
    report = await orchestrator.run(make_plan(mint_amount=3), [wallet_a, wallet_b], cancel_event=cancel_event)

    assert report.cancelled
    assert len(client.send_calls) == 1
    assert report.for_wallet(wallet_a.address).successes == 1
    assert report.for_wallet(wallet_b.address) is None


async def test_scheduled_run_quotes_fees_at_opening(client, wallet_a):
    client.balances = {wallet_a.address: PLENTY}

    class OpensOnSecondRead:
        reads = 0

        async def read(self):
            self.reads += 1
            if self.reads == 1:
                return SaleConfig(start_time=2 ** 40, end_time=2 ** 41, price=PRICE)
            client.fee_data = (gwei(200), gwei(210))
            return SaleConfig(start_time=0, end_time=2 ** 40, price=PRICE)

    monitor = SaleMonitor(OpensOnSecondRead(), poll_interval=0)
    plan = make_plan(mint_amount=1, max_fee_per_gas=gwei(20))

    report = await make_orchestrator(client).run_scheduled(
        plan, [wallet_a], monitor, fee_source=FeeOracle(client).estimate
    )

    assert report.total_successes == 1
    assert client.send_calls[0]["max_fee_per_gas"] == gwei(400)
    assert client.send_calls[0]["max_priority_fee_per_gas"] == gwei(2)
