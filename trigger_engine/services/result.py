"""Result type for per-record normalization."""

from dataclasses import dataclass
from typing import Generic, TypeVar

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


@dataclass(frozen=True, slots=True)
class Result(Generic[ValueT, ErrorT]):
    """
    A normalized value or the error that prevented it.

    Used where one bad record must not stop a batch: the caller inspects each
    result and decides whether to keep the value or log and drop the record.
    """

    _value: ValueT | None = None
    _error: ErrorT | None = None

    def __post_init__(self) -> None:
        if self._value is not None and self._error is not None:
            raise ValueError("Result cannot have both value and error")
        if self._value is None and self._error is None:
            raise ValueError("Result must have either value or error")

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(_value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(_error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        """The value, or the stored error raised."""
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def unwrap_or(self, default: ValueT) -> ValueT:
        return default if self._error is not None else self._value  # type: ignore[return-value]

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error
