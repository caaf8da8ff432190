#!/usr/bin/env python3
"""
botracers - Web host

Starts a local JSON API that exposes the workspace/registry view and the
artifact workflows, for editor extensions and browser front ends.

Usage:
    python botracers-web.py [--port 8000] [--host 127.0.0.1]
"""

from web.__main__ import main


if __name__ == "__main__":
    main()
