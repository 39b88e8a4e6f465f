"""Allow ``python -m gh_observer``."""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
