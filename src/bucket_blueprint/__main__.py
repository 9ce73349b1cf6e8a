"""Allow ``python -m bucket_blueprint``."""

import sys

from .cli import main

sys.exit(main())
