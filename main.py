#!/usr/bin/env python3
"""
Main entry point for the link harvester.
"""

import sys

from linkharvest.app import main


if __name__ == '__main__':
    sys.exit(main())
