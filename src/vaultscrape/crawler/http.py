"""
Shared aiohttp session handling.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp


@asynccontextmanager
async def borrow_session(session: Optional[aiohttp.ClientSession]) -> AsyncIterator[aiohttp.ClientSession]:
    """
    Yield ``session`` if it is usable, otherwise a temporary session that is
    closed on exit. Borrowed sessions are never closed here.
    """
    if session is not None and not session.closed:
        yield session
        return

    async with aiohttp.ClientSession() as temporary:
        yield temporary
