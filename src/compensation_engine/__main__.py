"""Entry point for ``python -m compensation_engine``."""

import sys

from compensation_engine.cli import main

if __name__ == "__main__":
    sys.exit(main())
