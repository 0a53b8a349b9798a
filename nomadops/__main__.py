"""Entry point for `python -m nomadops`.

Usage:
    python -m nomadops
"""

from __future__ import annotations

import asyncio

from nomadops.app import main

asyncio.run(main())
