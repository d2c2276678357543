"""Allow running as ``python -m multicoin``."""

import sys

from multicoin.main import main

sys.exit(main())
