"""
Structured fan-out helpers for the Modpack Catalog API.
"""

import asyncio
from typing import Any, Awaitable, List


async def gather_all(*aws: Awaitable[Any]) -> List[Any]:
    """Run awaitables concurrently and wait for every one of them.

    Unlike a plain ``asyncio.gather``, no task is left running when one
    fails: all of them settle first, then the first failure in argument
    order is raised.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results
