"""Allow ``python -m gallery_image``."""

import sys

from gallery_image.cli import main

sys.exit(main())
