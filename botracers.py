#!/usr/bin/env python3
"""
botracers - bot workspace and artifact registry tool

Builds the bots in a Cargo workspace, uploads them to a BotRacers server and
manages the artifacts you own there.

Usage:
    python botracers.py status
    python botracers.py upload car
    python botracers.py replace 42

This file is a thin wrapper around the CLI package.
For the modular implementation, see botracers_platform/, cli/ and web/.
"""

import asyncio
from cli.commands import main

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
