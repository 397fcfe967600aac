#!/usr/bin/env python3
"""Entry point for Portfolio Risk Analytics."""

from portfolio_analytics.cli import main

if __name__ == "__main__":
    main()
