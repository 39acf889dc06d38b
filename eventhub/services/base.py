from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from ..logging_config import logger
from ..utils.errors import EventHubError

T = TypeVar("T")


@dataclass
class OperationResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None


def store_operation(default_message: str, loading_attr: Optional[str] = "is_loading"):
    """Run a store coroutine behind the store's loading/error flags.

    The wrapped method may raise; the error ends up in ``self.state.error``
    and in the returned ``OperationResult``, never in the caller.
    """

    def decorator(func: Callable[..., Awaitable[Any]]):
        @wraps(func)
        async def wrapper(self, *args, **kwargs) -> OperationResult:
            state = self.state
            if loading_attr:
                setattr(state, loading_attr, True)
                state.error = None
            try:
                value = await func(self, *args, **kwargs)
            except EventHubError as exc:
                message = str(exc) or default_message
                logger.warning("%s.%s failed: %s", type(self).__name__, func.__name__, message)
                state.error = message
                return OperationResult(ok=False, error=message)
            except Exception as exc:
                message = str(exc) or default_message
                logger.exception("%s.%s crashed", type(self).__name__, func.__name__)
                state.error = message
                return OperationResult(ok=False, error=message)
            finally:
                if loading_attr:
                    setattr(state, loading_attr, False)
            return OperationResult(ok=True, value=value)

        return wrapper

    return decorator
