"""Allow ``python -m route_coverage``."""

import sys

from .main import main

sys.exit(main())
