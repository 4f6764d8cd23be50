"""
Sale configuration probing.
"""

from typing import Any, Optional, Sequence, Tuple
from loguru import logger

from minter.evm.errors import ConfigReadError
from minter.evm.models import MintVariant, SaleConfig

# getConfig() first, then getConfig(uint256) with ids 0-3
SALE_CONFIG_PROBES: Tuple[Optional[int], ...] = (None, 0, 1, 2, 3)


def _field(raw: Any, name: str, index: int) -> Any:
    if isinstance(raw, dict):
        return raw.get(name)
    if hasattr(raw, name):
        return getattr(raw, name)
    return raw[index] if len(raw) > index else None


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def parse_sale_config(raw: Any) -> SaleConfig:
    """
    Builds a SaleConfig from a getConfig result.

    Accepts the nested tuple web3 returns ((startTime, endTime, price),
    maxSupply, walletLimit) as well as dicts keyed by the struct field names.
    """
    stage = _field(raw, "publicStage", 0)
    if stage is None:
        raise ConfigReadError("Sale configuration has no publicStage")

    return SaleConfig(
        start_time=int(_field(stage, "startTime", 0)),
        end_time=int(_field(stage, "endTime", 1)),
        price=int(_field(stage, "price", 2)),
        max_supply=_optional_int(_field(raw, "maxSupply", 1)),
        wallet_limit=_optional_int(_field(raw, "walletLimit", 2))
    )


def variant_hint(probe_id: Optional[int]) -> MintVariant:
    """Contracts exposing getConfig() take the two-argument mint; indexed ones take four."""
    return MintVariant.TWO_PARAM if probe_id is None else MintVariant.FOUR_PARAM


class SaleConfigReader:
    """
    Reads a contract's sale configuration by trying each probe in order.
    """

    def __init__(self, client, contract_address: str, probes: Sequence[Optional[int]] = SALE_CONFIG_PROBES, log=None):
        self.client = client
        self.contract_address = contract_address
        self.probes = tuple(probes)
        self.log = log or logger

    async def read_with_probe(self) -> Tuple[SaleConfig, Optional[int]]:
        """
        Returns the first configuration any probe yields, with that probe's id
        (None for the no-argument form).

        Raises:
            ConfigReadError: If every probe fails
        """
        errors = []
        for probe_id in self.probes:
            try:
                raw = await self.client.get_sale_config(self.contract_address, probe_id)
                return parse_sale_config(raw), probe_id
            except Exception as e:
                label = "getConfig()" if probe_id is None else f"getConfig({probe_id})"
                self.log.debug(f"{label} failed: {str(e)}")
                errors.append(f"{label}: {str(e)}")

        raise ConfigReadError("Unable to retrieve configuration; " + "; ".join(errors))

    async def read(self) -> SaleConfig:
        config, _ = await self.read_with_probe()
        return config

    async def resolve_price(self, default_price: int) -> int:
        """Public sale price from the contract, or default_price if unreadable."""
        try:
            config = await self.read()
            return config.price
        except ConfigReadError as e:
            self.log.warning(f"Could not read mint price from contract, using default: {str(e)}")
            return default_price
