#!/usr/bin/env python
import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional
from loguru import logger
from web3 import Web3

from minter.config import (
    DEFAULT_GAS_LIMIT,
    DEFAULT_MINT_PRICE_ETHER,
    LOG_LEVEL,
    NETWORK,
    SALE_POLL_INTERVAL,
    get_network,
    random_gas_limit,
    validate_env,
)
from minter.evm.client import ChainClient
from minter.evm.errors import MinterError
from minter.evm.fee_oracle import FeeOracle, format_gwei
from minter.evm.mint_executor import MintExecutor
from minter.evm.models import FeeQuote, MintPlan, MintVariant
from minter.evm.orchestrator import MintOrchestrator
from minter.evm.sale_config import SaleConfigReader, variant_hint
from minter.evm.sale_monitor import SaleMonitor
from minter.utils.validation_utils import (
    as_argparse_type,
    extract_contract_address,
    validate_gas_limit,
    validate_max_fee,
    validate_mint_amount,
    validate_price,
    validate_priority_fee,
)
from minter.utils.wallet_loader import load_wallets


def setup_logging():
    """Configure structured logging with loguru."""
    logger.remove()  # Remove default handler
    logger.add(
        "logs/minter_{time}.log",
        rotation="1 day",
        retention="14 days",
        level=LOG_LEVEL,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}",
        serialize=True,  # JSON formatting for structured logs
    )

    # Also send logs to stdout
    logger.add(
        lambda msg: print(msg, end=""),
        level=LOG_LEVEL,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"
    )

    # Redirect web3 logger to loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to loguru."""
    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def parse_gas_limit(text: str) -> Optional[int]:
    """Gas limit argument; "random" picks one per run from the configured range."""
    if text.strip().lower() == "random":
        return None
    return as_argparse_type(validate_gas_limit)(text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mint NFTs from every configured wallet")
    parser.add_argument("--contract", "-c", required=True, help="NFT contract address or Magic Eden link")
    parser.add_argument("--mode", choices=["immediate", "scheduled"], default="immediate",
                        help="Mint now, or wait for the public sale window to open")
    parser.add_argument("--amount", "-n", type=as_argparse_type(validate_mint_amount), default=1,
                        help="Number of NFTs to mint per wallet")
    parser.add_argument("--gas-limit", type=parse_gas_limit, default=DEFAULT_GAS_LIMIT,
                        help=f"Gas limit per mint, or 'random' (default {DEFAULT_GAS_LIMIT})")
    parser.add_argument("--max-fee", type=as_argparse_type(validate_max_fee), default=None,
                        help="Max fee per gas in gwei (default: estimated)")
    parser.add_argument("--priority-fee", type=as_argparse_type(validate_priority_fee), default=None,
                        help="Max priority fee per gas in gwei (default: estimated)")
    parser.add_argument("--price", type=as_argparse_type(validate_price), default=None,
                        help="Mint price in native currency (default: read from contract)")
    parser.add_argument("--variant", choices=[v.value for v in MintVariant] + ["auto"],
                        default=MintVariant.FOUR_PARAM.value,
                        help="mintPublic calling convention to try first")
    parser.add_argument("--poll-interval", type=float, default=SALE_POLL_INTERVAL,
                        help="Seconds between sale window checks in scheduled mode")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Give up waiting for the sale window after this many seconds")
    parser.add_argument("--single-gas-reserve", action="store_true",
                        help="Reserve gas for one transaction only when checking balances")
    parser.add_argument("--network", default=NETWORK, help="Network preset to use")
    parser.add_argument("--rpc-url", default=None, help="Override the network's RPC URL")
    return parser


def install_cancel_handlers(cancel_event: asyncio.Event) -> List[int]:
    """
    Route SIGINT/SIGTERM to cancel_event. The first signal restores the
    default handlers, so a second Ctrl-C interrupts immediately.

    Returns:
        The signals that were installed
    """
    loop = asyncio.get_running_loop()
    installed = []

    def on_signal():
        logger.warning("Cancel requested, stopping after the current mint (Ctrl-C again to abort)")
        cancel_event.set()
        remove_cancel_handlers(installed)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, on_signal)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Signal handlers are unavailable on some platforms
            pass

    return installed


def remove_cancel_handlers(signals: List[int]):
    loop = asyncio.get_running_loop()
    while signals:
        loop.remove_signal_handler(signals.pop())


async def run(args: argparse.Namespace) -> int:
    wallets = load_wallets()
    if not wallets:
        logger.error("No valid wallets configured, check your .env file")
        return 1

    network = get_network(args.network)
    contract_address = extract_contract_address(args.contract)
    client = ChainClient(args.rpc_url or network["rpc_url"], chain_id=network["chain_id"])
    symbol = network["symbol"]
    cancel_event = asyncio.Event()
    installed_signals = install_cancel_handlers(cancel_event)

    try:
        logger.info(f"Using contract address: {contract_address}")
        logger.info(f"NFTs per wallet: {args.amount}")

        info = await client.get_collection_info(contract_address)
        logger.info(f"Collection: {info['name']} ({info['symbol']})")

        reader = SaleConfigReader(client, contract_address)
        variant = MintVariant.FOUR_PARAM
        if args.variant == "auto":
            try:
                _, probe_id = await reader.read_with_probe()
                variant = variant_hint(probe_id)
            except MinterError as e:
                logger.warning(f"Could not detect mint variant, using {variant.value}: {str(e)}")
        else:
            variant = MintVariant(args.variant)
        logger.info(f"Using {variant.value} mint variant")

        if args.price is None:
            price = await reader.resolve_price(Web3.to_wei(DEFAULT_MINT_PRICE_ETHER, "ether"))
            logger.success(f"Mint price - [{Web3.from_wei(price, 'ether')} {symbol}]")
        else:
            price = args.price

        gas_limit = args.gas_limit if args.gas_limit is not None else random_gas_limit()
        logger.info(f"Gas limit: {gas_limit}")

        fee_oracle = FeeOracle(client)

        async def quote_fees() -> FeeQuote:
            quote = fee_oracle.resolve_bid(
                await fee_oracle.estimate(),
                max_fee_per_gas=None if args.max_fee is None else Web3.to_wei(args.max_fee, "gwei"),
                max_priority_fee_per_gas=None if args.priority_fee is None else Web3.to_wei(args.priority_fee, "gwei")
            )
            logger.info("Gas settings:")
            logger.info(f"- Base fee: {format_gwei(quote.base_fee)}")
            logger.info(f"- Max fee: {format_gwei(quote.max_fee_per_gas)}")
            logger.info(f"- Priority fee: {format_gwei(quote.max_priority_fee_per_gas)}")
            return quote

        quote = await quote_fees()

        plan = MintPlan(
            contract_address=contract_address,
            mint_amount=args.amount,
            gas_limit=gas_limit,
            max_fee_per_gas=quote.max_fee_per_gas,
            max_priority_fee_per_gas=quote.max_priority_fee_per_gas,
            price=price,
            variant=variant,
            use_contract_price=args.price is None,
            gas_per_unit=not args.single_gas_reserve
        )

        executor = MintExecutor(client, explorer_url=network["explorer_url"])
        orchestrator = MintOrchestrator(client, executor, symbol=symbol)

        if args.mode == "scheduled":
            monitor = SaleMonitor(reader, poll_interval=args.poll_interval)
            report = await orchestrator.run_scheduled(
                plan,
                wallets,
                monitor,
                cancel_event=cancel_event,
                timeout=args.timeout,
                fee_source=quote_fees
            )
            if report is None:
                return 1
        else:
            report = await orchestrator.run_immediate(plan, wallets, cancel_event=cancel_event)

        if report.cancelled:
            return 1
        if report.total_attempts and not report.total_successes:
            return 1
        return 0
    finally:
        remove_cancel_handlers(installed_signals)
        await client.close()


async def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, load configuration and run the minter."""
    setup_logging()
    args = build_parser().parse_args(argv)

    try:
        validate_env()
        return await run(args)
    except (MinterError, ValueError) as e:
        logger.error(f"Error: {str(e)}")
        return 1


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
