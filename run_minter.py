#!/usr/bin/env python
"""
Run script for the NFT minter.

This script sets up logging directories and runs the minter.
"""

import os
import sys
import asyncio
from pathlib import Path

# Ensure the 'minter' package is in the Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

# Create logs directory if it doesn't exist
logs_dir = Path("logs")
logs_dir.mkdir(exist_ok=True)

# Import the minter's main function after setting up paths
from minter.main import main

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
