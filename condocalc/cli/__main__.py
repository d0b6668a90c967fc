"""Allow running the CLI with `python -m condocalc.cli`."""

import sys

from condocalc.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
