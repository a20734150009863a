"""Allow running the toolchain finder with ``python -m toolchain_finder``."""

import sys

from .cli import main

sys.exit(main())
