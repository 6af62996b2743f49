#!/usr/bin/env python3
"""Convenience runner for the route coverage tool.

Usage:
    python run.py --route-file route.geojson [--interval 250] [--output results.xlsx]

Logging is configured by the entry point from ``--log-level``.
"""
import sys

from route_coverage.main import main

if __name__ == "__main__":
    sys.exit(main())
