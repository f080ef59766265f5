"""Queue canned outcomes on an ``AsyncMock`` standing in for ``Transport.dispatch``.

Outcomes queued with ``multiple=False`` are consumed one per call, in order;
once the queue is empty the mock falls back to its ``return_value``.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from typing import Any
from unittest.mock import DEFAULT, AsyncMock

import aiohttp
from multidict import CIMultiDict

from .transport import ApiResponse

_QUEUE_ATTR = "_queued_outcomes"


def _outcomes(mock: AsyncMock) -> deque:
    queue = vars(mock).get(_QUEUE_ATTR)
    if queue is None:
        queue = deque()
        setattr(mock, _QUEUE_ATTR, queue)

        async def next_outcome(*args: Any, **kwargs: Any) -> Any:
            if not queue:
                return DEFAULT
            outcome = queue.popleft()
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

        mock.side_effect = next_outcome
    return queue


def _response(status: int, data: Any, headers: Mapping[str, str] | None) -> ApiResponse:
    return ApiResponse(status=status, headers=CIMultiDict(headers or {}), data=data)


def mock_success(
    mock: AsyncMock,
    data: Any,
    *,
    status: int = 200,
    headers: Mapping[str, str] | None = None,
    multiple: bool = False,
) -> ApiResponse:
    response = _response(status, data, headers)
    if multiple:
        mock.return_value = response
    else:
        _outcomes(mock).append(response)
    return response


def mock_error(
    mock: AsyncMock,
    status: int,
    data: Any = None,
    *,
    headers: Mapping[str, str] | None = None,
) -> ApiResponse:
    response = _response(status, data, headers)
    _outcomes(mock).append(response)
    return response


def mock_network_error(mock: AsyncMock, message: str = "Connection refused") -> None:
    _outcomes(mock).append(aiohttp.ClientConnectionError(message))
