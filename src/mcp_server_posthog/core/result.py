"""
Tagged results for calls that cross the PostHog API boundary.

Resource operations never raise; they return either ``Success`` carrying the
payload or ``Failure`` carrying a human-readable message. Callers branch on
``result.success``:

    result = await api.users.me()
    if not result.success:
        raise StateResolutionError(f"Failed to get user: {result.message}")
    distinct_id = result.data.distinct_id
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T
    success: Literal[True] = True


@dataclass(frozen=True)
class Failure:
    message: str
    status: int | None = None
    details: Any = None
    success: Literal[False] = False


ApiResult = Union[Success[T], Failure]
