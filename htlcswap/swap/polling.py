"""
Cancellable waits used by the polling loops.
"""

import asyncio
from typing import Optional

from ..errors import Cancelled


def check_cancelled(cancellation: Optional[asyncio.Event]):
    if cancellation is not None and cancellation.is_set():
        raise Cancelled()


async def wait_or_cancel(delay: float, cancellation: Optional[asyncio.Event]):
    """
    Sleep for delay seconds, waking up early if cancellation is set.

    Raises Cancelled when the event is (or becomes) set.
    """
    check_cancelled(cancellation)
    if cancellation is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancellation.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return
    raise Cancelled()
