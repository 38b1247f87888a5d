"""
Shared tail of every lifecycle operation: propagate, then respond.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel

from collabhub.core.exceptions import PropagationFailedError

ResponseT = TypeVar("ResponseT", bound=BaseModel)


async def propagate_and_respond(
    propagation: Awaitable[None] | None,
    respond: Callable[[], Awaitable[ResponseT]],
) -> ResponseT:
    """
    Await the coordinator, then build the response.

    The primary write is already committed when this runs. If propagation
    fails the response is still built and attached to the error, so the
    caller receives the committed entity next to the failure signal.
    `propagation` is None for changes that have no propagation steps.
    """
    if propagation is None:
        return await respond()
    try:
        await propagation
    except PropagationFailedError as exc:
        exc.attach((await respond()).model_dump(mode="json"))
        raise
    return await respond()
