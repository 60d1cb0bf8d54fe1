"""Allow ``python -m envstack``."""

import sys

from envstack.cli import main

if __name__ == "__main__":
    sys.exit(main())
