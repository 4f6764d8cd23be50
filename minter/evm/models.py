"""
Models for mint operations.
"""
from enum import Enum
from typing import List, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class MintVariant(str, Enum):
    """The two argument shapes deployed contracts use for mintPublic."""
    FOUR_PARAM = "fourParams"
    TWO_PARAM = "twoParams"

    @property
    def signature(self) -> str:
        if self is MintVariant.FOUR_PARAM:
            return "mintPublic(address,uint256,uint256,bytes)"
        return "mintPublic(address,uint256)"

    def call_args(self, recipient: str) -> Tuple:
        """Arguments for minting a single unit to recipient."""
        if self is MintVariant.FOUR_PARAM:
            return (recipient, 0, 1, b"")
        return (recipient, 1)

    def alternate(self) -> "MintVariant":
        if self is MintVariant.FOUR_PARAM:
            return MintVariant.TWO_PARAM
        return MintVariant.FOUR_PARAM


class ErrorKind(str, Enum):
    """Classification of a failed mint."""
    CALL_REVERTED = "call_reverted"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    RECEIPT_FAILED = "receipt_failed"
    OTHER = "other"


class WalletInfo(BaseModel):
    """A wallet loaded from the environment."""
    model_config = ConfigDict(frozen=True)

    id: int
    address: str
    private_key: str = Field(repr=False)


class FeeQuote(BaseModel):
    """Fee bid in wei."""
    base_fee: int = Field(ge=0)
    gas_price: int = Field(ge=0)
    max_fee_per_gas: int = Field(ge=0)
    max_priority_fee_per_gas: int = Field(ge=0)
    is_fallback: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)


class SaleConfig(BaseModel):
    """Snapshot of the contract's public sale configuration."""
    model_config = ConfigDict(frozen=True)

    start_time: int
    end_time: int
    price: int
    max_supply: Optional[int] = None
    wallet_limit: Optional[int] = None

    def is_open(self, now: float) -> bool:
        return self.start_time <= now <= self.end_time


class MintAttempt(BaseModel):
    """A single mint transaction submission."""
    model_config = ConfigDict(frozen=True)

    contract_address: str
    wallet_address: str
    variant: MintVariant
    gas_limit: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    price: int
    quantity: int = 1


class MintSuccess(BaseModel):
    """A mint that was mined with a successful status."""
    tx_hash: str
    block_number: int
    gas_used: int
    effective_gas_price: int
    variant: MintVariant
    explorer_url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return True


class MintFailure(BaseModel):
    """A mint that was rejected, failed to submit, or reverted on-chain."""
    reason: str
    kind: ErrorKind = ErrorKind.OTHER
    variant: MintVariant
    raw: Optional[str] = None
    tx_hash: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False


MintResult = Union[MintSuccess, MintFailure]


class BalanceCheck(BaseModel):
    """Result of a wallet balance preflight."""
    address: str
    balance: int
    required: int
    sufficient: bool


class MintPlan(BaseModel):
    """Parameters shared by every mint in a run."""
    contract_address: str
    mint_amount: int = Field(default=1, ge=1)
    gas_limit: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    price: int
    variant: MintVariant = MintVariant.FOUR_PARAM
    use_contract_price: bool = False
    gas_per_unit: bool = True


class WalletReport(BaseModel):
    """Per-wallet outcome of a run."""
    wallet_id: int
    address: str
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    skipped_reason: Optional[str] = None
    tx_hashes: List[str] = Field(default_factory=list)


class RunReport(BaseModel):
    """Outcome of a full run across all wallets."""
    wallets: List[WalletReport] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    cancelled: bool = False

    @property
    def total_successes(self) -> int:
        return sum(w.successes for w in self.wallets)

    @property
    def total_failures(self) -> int:
        return sum(w.failures for w in self.wallets)

    @property
    def total_attempts(self) -> int:
        return sum(w.attempts for w in self.wallets)

    def for_wallet(self, address: str) -> Optional[WalletReport]:
        for report in self.wallets:
            if report.address == address:
                return report
        return None
