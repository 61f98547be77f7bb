"""Allow running the CLI with ``python -m oneinv``."""

import sys

from oneinv.cli import main

if __name__ == "__main__":
    sys.exit(main())
