"""Entry point for `python -m statusinformer`.

Usage:
    python -m statusinformer
    uv run python -m statusinformer
"""

from __future__ import annotations

import asyncio

from statusinformer.app import main

asyncio.run(main())
