"""
Wallet balance preflight for mint runs.
"""

from minter.evm.models import BalanceCheck


def required_amount(price: int, quantity: int, max_fee_per_gas: int, gas_limit: int, gas_per_unit: bool = True) -> int:
    """
    Worst-case wei needed to mint quantity units.

    Each unit is its own transaction, so by default the gas cost is counted
    once per unit. gas_per_unit=False counts it once for the whole batch.
    """
    gas_units = quantity if gas_per_unit else 1
    return price * quantity + max_fee_per_gas * gas_limit * gas_units


async def check_balance(
    client,
    address: str,
    price: int,
    quantity: int,
    max_fee_per_gas: int,
    gas_limit: int,
    gas_per_unit: bool = True
) -> BalanceCheck:
    """Reads the balance of address and compares it with the required amount."""
    balance = await client.get_balance(address)
    required = required_amount(price, quantity, max_fee_per_gas, gas_limit, gas_per_unit)
    return BalanceCheck(
        address=address,
        balance=balance,
        required=required,
        sufficient=balance >= required
    )
