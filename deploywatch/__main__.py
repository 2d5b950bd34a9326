"""Entry point for `python -m deploywatch`.

Usage:
    python -m deploywatch
    deploywatch run
"""

from __future__ import annotations

import asyncio

from deploywatch.app import main

asyncio.run(main())
