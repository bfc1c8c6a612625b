#!/usr/bin/env python3
"""
Make catalog package executable as a module.

This allows running: python -m snowskills.catalog [command] [args...]
"""

import sys

from .cli import main

if __name__ == '__main__':
    sys.exit(main())
