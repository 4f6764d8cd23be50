import argparse
from decimal import Decimal, InvalidOperation
from typing import Tuple, Union
from web3 import Web3

from minter.config import MIN_GAS_LIMIT, MIN_MAX_FEE_GWEI
from minter.evm.errors import InvalidContractAddressError


def extract_contract_address(text: str) -> str:
    """
    Accept a contract address or a marketplace link ending in one.

    Raises:
        InvalidContractAddressError: If no valid address is found
    """
    candidate = text.strip().rstrip("/")
    if "magiceden.io" in candidate:
        candidate = candidate.split("/")[-1]

    if not Web3.is_address(candidate):
        raise InvalidContractAddressError(f"Invalid contract address: {text}")

    return Web3.to_checksum_address(candidate)


def validate_mint_amount(text: str) -> Tuple[bool, Union[int, str]]:
    """
    Validate the per-wallet mint amount.

    Returns:
        A tuple of (is_valid, value_or_error_message)
    """
    try:
        value = int(text.strip())
    except ValueError:
        return False, "Please enter a valid number."

    if value < 1:
        return False, "Please enter a number greater than 0."

    return True, value


def validate_gas_limit(text: str) -> Tuple[bool, Union[int, str]]:
    try:
        value = int(text.strip())
    except ValueError:
        return False, "Please enter a valid gas limit."

    if value < MIN_GAS_LIMIT:
        return False, f"Gas limit cannot be lower than {MIN_GAS_LIMIT}."

    return True, value


def validate_max_fee(text: str) -> Tuple[bool, Union[float, str]]:
    try:
        value = float(text.strip())
    except ValueError:
        return False, "Please enter a valid gas price in gwei."

    if value < MIN_MAX_FEE_GWEI:
        return False, f"Gas price cannot be lower than {MIN_MAX_FEE_GWEI} gwei."

    return True, value


def validate_priority_fee(text: str) -> Tuple[bool, Union[float, str]]:
    try:
        value = float(text.strip())
    except ValueError:
        return False, "Please enter a valid priority fee."

    if value <= 0:
        return False, "Please enter a valid priority fee."

    return True, value


def validate_price(text: str) -> Tuple[bool, Union[int, str]]:
    """
    Validate a mint price given in native currency.

    Returns:
        A tuple of (is_valid, price_in_wei_or_error_message)
    """
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        return False, "Please enter a valid price."

    if not value.is_finite() or value < 0:
        return False, "Please enter a price of 0 or more."

    try:
        return True, Web3.to_wei(value, "ether")
    except ValueError:
        return False, "Price is out of range."


def as_argparse_type(validator):
    """Wrap a (is_valid, value_or_error) validator for use as an argparse type."""
    def parse(text: str):
        valid, value = validator(text)
        if not valid:
            raise argparse.ArgumentTypeError(value)
        return value

    parse.__name__ = validator.__name__
    return parse
