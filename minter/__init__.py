"""
Multi-wallet NFT mint runner for EVM chains.
"""
