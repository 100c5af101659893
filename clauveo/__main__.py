"""Entry point for launching the desktop command bridge."""
from __future__ import annotations

import sys

from clauveo.command_server import main


if __name__ == "__main__":
    sys.exit(main())
