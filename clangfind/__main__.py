# SPDX-License-Identifier: MIT
"""Allow running clangfind as 'python -m clangfind'."""

import sys

from clangfind.cli import main

sys.exit(main())
