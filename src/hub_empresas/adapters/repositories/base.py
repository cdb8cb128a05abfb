"""Shared helpers for the SQLAlchemy repositories."""

import functools
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from hub_empresas.errors import StoreError
from hub_empresas.observability import get_logger

logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def translate_store_errors(method: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Re-raise SQLAlchemy failures from a repository method as StoreError."""

    @functools.wraps(method)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await method(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error(
                "Database operation failed",
                operation=method.__qualname__,
                error=str(exc),
            )
            raise StoreError(f"Database operation {method.__qualname__} failed.") from exc

    return wrapper
