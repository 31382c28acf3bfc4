# signalwatch/domain/common/result.py

"""
Result pattern implementation for error handling.

Pipeline stages return either a success value or a DomainError instead of
raising for expected failures, so the monitoring loop branches on data.
"""
from typing import TypeVar, Generic, Optional, Union, Callable

from signalwatch.domain.common.errors import DomainError, ErrorCategory

T = TypeVar('T')
U = TypeVar('U')


class Result(Generic[T]):
    """
    Either a value or a DomainError.

    Accessing ``value`` on a failure (or ``error`` on a success) raises
    ValueError; use ``value_or`` where a fallback is acceptable.
    """

    def __init__(self, value: Optional[T], error: Optional[Union[str, DomainError]]):
        self._value = value

        # Plain strings become uncategorised domain errors
        if isinstance(error, str):
            self._error = DomainError(message=error, category=ErrorCategory.UNKNOWN)
        else:
            self._error = error

    @classmethod
    def ok(cls, value: T) -> 'Result[T]':
        """Create a successful result with a value."""
        return cls(value, None)

    @classmethod
    def fail(cls, error: Union[str, DomainError]) -> 'Result[T]':
        """Create a failed result with an error message or DomainError."""
        return cls(None, error)

    @property
    def is_success(self) -> bool:
        return self._error is None

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    def value(self) -> T:
        """
        Get the success value.

        Raises:
            ValueError: If the result is a failure
        """
        if self.is_failure:
            raise ValueError(f"Cannot access value of a failed result: {self._error}")
        return self._value

    @property
    def error(self) -> DomainError:
        """
        Get the error.

        Raises:
            ValueError: If the result is a success
        """
        if self.is_success:
            raise ValueError("Cannot access error of a successful result")
        return self._error

    def value_or(self, default: T) -> T:
        """Return the value when successful, otherwise the given default."""
        return self._value if self.is_success else default

    def map(self, func: Callable[[T], U]) -> 'Result[U]':
        """Transform the value if successful; exceptions become failures."""
        if self.is_failure:
            return Result.fail(self._error)
        try:
            return Result.ok(func(self._value))
        except Exception as e:
            return Result.fail(DomainError.from_exception(e))

    def and_then(self, func: Callable[[T], 'Result[U]']) -> 'Result[U]':
        """Chain another operation that returns a Result."""
        if self.is_success:
            return func(self._value)
        return Result.fail(self._error)

    def on_success(self, action: Callable[[T], None]) -> 'Result[T]':
        if self.is_success:
            action(self._value)
        return self

    def on_failure(self, action: Callable[[DomainError], None]) -> 'Result[T]':
        if self.is_failure:
            action(self._error)
        return self

    @classmethod
    def from_operation(cls, operation_func, logger, error_type, error_message, **kwargs):
        """
        Create a Result from an operation that might raise.

        Standardizes the try/except pattern used by the services: the
        exception is wrapped in ``error_type``, logged, and returned as a
        failure.

        Args:
            operation_func: The function to execute
            logger: Logger to use for errors
            error_type: The domain error type to create on failure
            error_message: Error message prefix
            **kwargs: Context information for error details

        Returns:
            A Result object containing the operation result or error
        """
        try:
            result = operation_func()
            if isinstance(result, Result):
                return result
            return cls.ok(result)
        except Exception as e:
            error = error_type(
                message=f"{error_message}: {e}",
                details=kwargs,
                inner_error=e
            )
            logger.error(str(error))
            return cls.fail(error)

    def __repr__(self) -> str:
        if self.is_success:
            return f"Result.ok({self._value!r})"
        return f"Result.fail({self._error})"
