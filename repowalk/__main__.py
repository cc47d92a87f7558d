"""Allow ``python -m repowalk``."""

import sys

from .cli import main

sys.exit(main())
