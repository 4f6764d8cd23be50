import os
import re
from typing import List, Mapping, Optional
from eth_account import Account
from loguru import logger

from minter.config import PRIVATE_KEY_PREFIX
from minter.evm.models import WalletInfo


def _key_order(name: str) -> int:
    """PRIVATEKEY sorts first, then PRIVATEKEY_1, PRIVATEKEY_2, ..."""
    match = re.search(r"(\d+)$", name)
    return int(match.group(1)) if match else 0


def load_wallets(environ: Optional[Mapping[str, str]] = None) -> List[WalletInfo]:
    """
    Load every wallet whose private key is set in the environment.

    Args:
        environ: Mapping to read keys from, defaults to os.environ

    Returns:
        Wallets ordered by key suffix, with ids starting at 1
    """
    environ = os.environ if environ is None else environ
    key_names = sorted(
        (name for name in environ if name.startswith(PRIVATE_KEY_PREFIX)),
        key=_key_order
    )

    wallets = []
    for key_name in key_names:
        private_key = environ[key_name].strip()
        if not private_key.startswith("0x"):
            logger.warning(f"Skipping {key_name}: private key must start with 0x")
            continue

        try:
            account = Account.from_key(private_key)
        except Exception as e:
            logger.error(f"Invalid private key in {key_name}: {type(e).__name__}")
            continue

        wallets.append(WalletInfo(id=len(wallets) + 1, address=account.address, private_key=private_key))
        logger.info(f"Loaded wallet {len(wallets)}: {account.address[:10]}...")

    return wallets
