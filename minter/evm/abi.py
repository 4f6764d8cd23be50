"""
Minimal ABI for public-sale NFT contracts.
"""

_PUBLIC_STAGE = {
    "name": "publicStage",
    "type": "tuple",
    "components": [
        {"name": "startTime", "type": "uint256"},
        {"name": "endTime", "type": "uint256"},
        {"name": "price", "type": "uint256"},
    ],
}

_CONFIG_OUTPUT = {
    "name": "config",
    "type": "tuple",
    "components": [
        _PUBLIC_STAGE,
        {"name": "maxSupply", "type": "uint256"},
        {"name": "walletLimit", "type": "uint256"},
    ],
}

MINT_ABI = [
    {
        "name": "mintPublic",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "tokenId", "type": "uint256"},
            {"name": "qty", "type": "uint256"},
            {"name": "data", "type": "bytes"},
        ],
        "outputs": [],
    },
    {
        "name": "mintPublic",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "qty", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "name": "getConfig",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [_CONFIG_OUTPUT],
    },
    {
        "name": "getConfig",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [_CONFIG_OUTPUT],
    },
    {
        "name": "name",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "name": "symbol",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
]
