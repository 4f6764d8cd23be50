import os
import random
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Network configuration
NETWORK = os.getenv("NETWORK", "monad-testnet")
RPC_URL = os.getenv("RPC_URL", "")

NETWORKS = {
    "monad-testnet": {
        "rpc_url": "https://testnet-rpc.monad.xyz",
        "chain_id": 10143,
        "explorer_url": "https://testnet.monadexplorer.com/tx/",
        "symbol": "MON",
    },
}

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Gas limit configuration
DEFAULT_GAS_LIMIT = 100000
MIN_GAS_LIMIT = 90000
DEFAULT_GAS_LIMIT_MIN = int(os.getenv("DEFAULT_GAS_LIMIT_MIN", "180000"))
DEFAULT_GAS_LIMIT_MAX = int(os.getenv("DEFAULT_GAS_LIMIT_MAX", "280000"))

# Fee configuration (gwei)
DEFAULT_MAX_FEE_GWEI = 55
MIN_MAX_FEE_GWEI = 50
DEFAULT_PRIORITY_FEE_GWEI = 2

# Fee estimation retry and fallback quote
FEE_RETRY_ATTEMPTS = 3
FEE_RETRY_DELAY = 1  # seconds
FALLBACK_BASE_FEE_GWEI = 50
FALLBACK_GAS_PRICE_GWEI = 100

# Pacing between mint operations
UNIT_DELAY_SECONDS = float(os.getenv("UNIT_DELAY_SECONDS", "2"))
WALLET_DELAY_SECONDS = float(os.getenv("WALLET_DELAY_SECONDS", "5"))

# Sale window polling configuration
SALE_POLL_INTERVAL = float(os.getenv("SALE_POLL_INTERVAL", "5"))  # seconds

# Receipt wait timeout
RECEIPT_TIMEOUT = int(os.getenv("RECEIPT_TIMEOUT", "240"))  # seconds

# Fallback mint price when the contract price cannot be read
DEFAULT_MINT_PRICE_ETHER = "0.0001"

# Environment prefix for wallet private keys
PRIVATE_KEY_PREFIX = "PRIVATEKEY"


def get_network(name: str = NETWORK) -> dict:
    """Return the network preset, applying the RPC_URL override if set."""
    if name not in NETWORKS:
        raise ValueError(f"Unknown network '{name}'. Known networks: {', '.join(NETWORKS)}")
    network = dict(NETWORKS[name])
    if RPC_URL:
        network["rpc_url"] = RPC_URL
    return network


def random_gas_limit(low: int = DEFAULT_GAS_LIMIT_MIN, high: int = DEFAULT_GAS_LIMIT_MAX) -> int:
    """Pick a gas limit within the configured range."""
    return random.randint(low, high)


def validate_env():
    """
    Check the environment for required wallet configuration.

    Raises:
        ValueError: If no private key is configured or a key is malformed
    """
    key_names = [key for key in os.environ if key.startswith(PRIVATE_KEY_PREFIX)]
    if not key_names:
        raise ValueError(f"Missing required environment variables: {PRIVATE_KEY_PREFIX}")

    for key_name in key_names:
        if not os.environ[key_name].strip().startswith("0x"):
            raise ValueError(f"{key_name} must start with 0x")
