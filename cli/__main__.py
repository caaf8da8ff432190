"""
Entry point for running botracers as a module.

Usage:
    python -m cli status
    python -m cli upload car
    python -m cli replace 42
"""

import asyncio
from .commands import main

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
