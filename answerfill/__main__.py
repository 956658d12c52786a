# answerfill/__main__.py
"""Allow ``python -m answerfill``."""

import sys

from answerfill.cli import main

sys.exit(main())
