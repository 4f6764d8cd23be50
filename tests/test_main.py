"""Command line wiring: argument handling, mode selection and exit codes."""

import asyncio
import functools
import os
import signal

import pytest

import minter.main as main_module
from minter.evm.models import MintVariant
from minter.evm.orchestrator import MintOrchestrator
from minter.main import build_parser, install_cancel_handlers, run
from tests.conftest import CONTRACT, FakeChainClient, ether, gwei

PLENTY = ether(10)
FAR_FUTURE = 2 ** 40
OPEN_CONFIG = ((0, FAR_FUTURE, ether("0.02")), 100, 5)
CLOSED_CONFIG = ((FAR_FUTURE, FAR_FUTURE + 3600, ether("0.02")), 100, 5)


@pytest.fixture
def use_client(monkeypatch, wallet_a):
    """Points the CLI at a fake client and a single wallet, with no pacing delays."""
    def install(fake):
        monkeypatch.setattr(main_module, "ChainClient", lambda *args, **kwargs: fake)
        return fake

    monkeypatch.setattr(main_module, "load_wallets", lambda: [wallet_a])
    monkeypatch.setattr(
        main_module, "MintOrchestrator", functools.partial(MintOrchestrator, unit_delay=0, wallet_delay=0)
    )
    return install


async def run_cli(*argv) -> int:
    args = build_parser().parse_args(["--contract", CONTRACT, "--network", "monad-testnet", *argv])
    return await run(args)


async def test_all_attempts_failing_exits_1(use_client, client, wallet_a):
    use_client(client)
    client.balances = {wallet_a.address: PLENTY}
    client.revert_variants = {MintVariant.FOUR_PARAM, MintVariant.TWO_PARAM}

    assert await run_cli("--price", "0.01") == 1
    assert len(client.send_calls) == 2
    assert client.closed


async def test_every_wallet_skipped_exits_0(use_client, client):
    use_client(client)

    assert await run_cli("--price", "0.01") == 0
    assert client.send_calls == []


async def test_scheduled_timeout_exits_1(use_client, client, wallet_a):
    use_client(client)
    client.balances = {wallet_a.address: PLENTY}
    client.sale_configs = {None: CLOSED_CONFIG}

    exit_code = await run_cli("--mode", "scheduled", "--poll-interval", "0.01", "--timeout", "0.05")

    assert exit_code == 1
    assert client.send_calls == []
    assert client.closed


async def test_contract_price_used_without_price_flag(use_client, client, wallet_a):
    use_client(client)
    client.balances = {wallet_a.address: PLENTY}
    client.sale_configs = {None: OPEN_CONFIG}

    assert await run_cli() == 0
    assert client.send_calls[0]["value"] == ether("0.02")


async def test_price_flag_overrides_price_seen_at_opening(use_client, client, wallet_a):
    use_client(client)
    client.balances = {wallet_a.address: PLENTY}
    client.sale_configs = {None: OPEN_CONFIG}

    assert await run_cli("--mode", "scheduled", "--poll-interval", "0", "--price", "0.05") == 0
    assert client.send_calls[0]["value"] == ether("0.05")


@pytest.mark.parametrize("probe_id, variant", [
    (None, MintVariant.TWO_PARAM),
    (1, MintVariant.FOUR_PARAM),
])
async def test_auto_variant_follows_detected_config_shape(use_client, client, wallet_a, probe_id, variant):
    use_client(client)
    client.balances = {wallet_a.address: PLENTY}
    client.sale_configs = {probe_id: OPEN_CONFIG}

    assert await run_cli("--variant", "auto", "--price", "0.01") == 0
    assert client.send_calls[0]["variant"] == variant


@pytest.mark.parametrize("flags, minted", [
    ((), 0),
    (("--single-gas-reserve",), 2),
])
async def test_single_gas_reserve_flag(use_client, client, wallet_a, flags, minted):
    use_client(client)
    # 2 units at 0.01 plus gas at 60 gwei * 100000: 0.032 reserved per unit, 0.026 once
    client.balances = {wallet_a.address: ether("0.03")}

    exit_code = await run_cli("--amount", "2", "--price", "0.01", "--max-fee", "60", *flags)

    assert exit_code == 0
    assert len(client.send_calls) == minted


class FeeSpikeClient(FakeChainClient):
    """Sale closed on the first read; the base fee jumps before it opens."""

    async def get_sale_config(self, contract_address: str, probe_id=None):
        self.sale_config_calls.append(probe_id)
        if len(self.sale_config_calls) == 1:
            return CLOSED_CONFIG
        self.fee_data = (gwei(200), gwei(210))
        return OPEN_CONFIG


async def test_scheduled_fees_are_read_when_sale_opens(use_client, wallet_a):
    client = use_client(FeeSpikeClient(balances={wallet_a.address: PLENTY}))

    assert await run_cli("--mode", "scheduled", "--poll-interval", "0.01", "--price", "0.01") == 0

    call = client.send_calls[0]
    assert call["max_fee_per_gas"] == gwei(400)
    assert call["max_priority_fee_per_gas"] == gwei(2)


class InterruptedClient(FakeChainClient):
    """Receives a termination signal while waiting for the first receipt."""

    async def wait_for_receipt(self, tx_hash: str) -> dict:
        if len(self.send_calls) == 1:
            os.kill(os.getpid(), signal.SIGTERM)
            await asyncio.sleep(0.05)
        return await super().wait_for_receipt(tx_hash)


async def test_signal_during_run_stops_remaining_mints(use_client, wallet_a):
    client = use_client(InterruptedClient(balances={wallet_a.address: PLENTY}))

    assert await run_cli("--amount", "3", "--price", "0.01") == 1
    assert len(client.send_calls) == 1
    assert client.closed


async def test_first_signal_cancels_and_restores_default_handlers():
    cancel_event = asyncio.Event()
    installed = install_cancel_handlers(cancel_event)
    assert signal.SIGTERM in installed

    os.kill(os.getpid(), signal.SIGTERM)
    await asyncio.wait_for(cancel_event.wait(), timeout=1)

    assert installed == []
    assert not asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
