"""Allow `python -m revstream`."""

import sys

from .cli import main

sys.exit(main())
