"""Storage failure translation for asyncpg-backed repositories."""

from __future__ import annotations

import functools
from typing import Awaitable, Callable, TypeVar

import asyncpg

from app.domain.common.exceptions import UnavailableError
from app.obs import logging as obs_logging

T = TypeVar("T")

_logger = obs_logging.get_logger("justadrop.storage")

_STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def storage_call(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
	"""Surface driver/network failures as `UnavailableError`.

	Domain errors raised inside the wrapped call (e.g. a `ConflictError`
	translated from a unique violation) pass through untouched.
	"""

	@functools.wraps(func)
	async def wrapper(*args, **kwargs) -> T:
		try:
			return await func(*args, **kwargs)
		except _STORAGE_ERRORS as exc:
			_logger.exception("storage_call_failed", extra={"operation": func.__qualname__})
			raise UnavailableError() from exc

	return wrapper
