"""Allow running doksnet as ``python -m doksnet``."""

import sys

from doksnet.cli import main

sys.exit(main())
