"""Allow ``python -m tool_loop``."""

import sys

from .cli import main

sys.exit(main())
