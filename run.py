#!/usr/bin/env python3
"""Convenience runner for the Manhattan runs sync.

Usage:
    python run.py [sync|render] [options]
"""
import logging
from manhattan_runs.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
