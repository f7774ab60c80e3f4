"""Error handling utilities and decorators."""

import asyncio
import traceback
from typing import Optional, Callable, Any, Dict
from functools import wraps

from .exceptions import BaseApplicationError
from utils.monitoring import get_logger

logger = get_logger(__name__)


class ErrorHandler:
    """
    Centralized error handling.

    Features:
    - Error logging (client errors at WARNING, server errors at ERROR)
    - Recent error history
    - Error transformation to the API envelope
    """

    def __init__(self, max_history: int = 100):
        self.error_count = 0
        self.error_history: list = []
        self.max_history = max_history

    def log_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Log error with context.

        Args:
            error: Exception to log
            context: Additional context
        """
        self.error_count += 1

        error_info = {
            "type": type(error).__name__,
            "message": str(error),
            "context": context or {},
        }
        if not isinstance(error, BaseApplicationError):
            error_info["traceback"] = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        self.error_history.append(error_info)
        if len(self.error_history) > self.max_history:
            self.error_history.pop(0)

        if isinstance(error, BaseApplicationError):
            if error.status_code >= 500:
                logger.error(
                    f"{error.error_code}: {error.message}",
                    error=error,
                    status_code=error.status_code,
                    **(context or {})
                )
            else:
                logger.warning(
                    f"{error.error_code}: {error.message}",
                    status_code=error.status_code,
                    **(context or {})
                )
        else:
            logger.error(
                f"{type(error).__name__}: {str(error)}",
                error=error,
                **(context or {})
            )

    def handle_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        default_response: Any = None
    ) -> Any:
        """
        Handle error and return response.

        Args:
            error: Exception to handle
            context: Additional context
            default_response: Default response on error

        Returns:
            Error response or default
        """
        self.log_error(error, context)

        if isinstance(error, BaseApplicationError):
            return error.to_dict()

        if default_response is not None:
            return default_response
        return {
            "success": False,
            "error": "INTERNAL_ERROR",
            "message": "Internal server error",
        }

    def get_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        error_types = {}
        for error in self.error_history:
            error_type = error["type"]
            error_types[error_type] = error_types.get(error_type, 0) + 1

        return {
            "total_errors": self.error_count,
            "recent_errors": len(self.error_history),
            "error_types": error_types,
        }


# Global error handler
_global_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get or create global error handler."""
    global _global_handler
    if _global_handler is None:
        _global_handler = ErrorHandler()
    return _global_handler


def handle_errors(default_response: Any = None):
    """
    Decorator that logs any exception and returns ``default_response`` instead.

    Only for side effects whose failure must not reach the caller, such as
    outbound notifications.

    Usage:
        @handle_errors(default_response=False)
        async def notify():
            ...
    """
    def decorator(func: Callable) -> Callable:
        def _context(args, kwargs) -> Dict[str, Any]:
            return {
                "function": func.__name__,
                "args": str(args)[:100],
                "kwargs": str(kwargs)[:100],
            }

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                get_error_handler().log_error(e, context=_context(args, kwargs))
                return default_response

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                get_error_handler().log_error(e, context=_context(args, kwargs))
                return default_response

        return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

    return decorator
