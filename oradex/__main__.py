"""Run the extractor with ``python -m oradex``."""

import sys

from .oracle_ddl_extractor import main

sys.exit(main())
