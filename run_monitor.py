#!/usr/bin/env python3
"""
AMM cycle arbitrage monitor runner.

Same as the amm-arb-monitor console script:
  python run_monitor.py --config configs/mainnet.example.yaml --once
"""

import sys

from amm_arbitrage.cli import main

if __name__ == "__main__":
    sys.exit(main())
