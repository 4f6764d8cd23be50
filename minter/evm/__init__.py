"""
EVM integration for the minter.

This package contains the chain client, fee estimation, balance preflight,
sale window monitoring and the mint execution loop.
"""

from minter.evm.models import (
    BalanceCheck,
    ErrorKind,
    FeeQuote,
    MintFailure,
    MintPlan,
    MintResult,
    MintSuccess,
    MintVariant,
    RunReport,
    SaleConfig,
    WalletInfo,
    WalletReport,
)
from minter.evm.client import ChainClient
from minter.evm.fee_oracle import FeeOracle, fallback_fee_quote
from minter.evm.balance_check import check_balance, required_amount
from minter.evm.sale_config import SaleConfigReader
from minter.evm.sale_monitor import SaleMonitor, SaleState
from minter.evm.mint_executor import MintExecutor
from minter.evm.orchestrator import MintOrchestrator
