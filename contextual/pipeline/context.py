"""Request-scoped context carried through pipeline stages."""

from typing import Any, Dict, Hashable, Mapping, Optional
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ContextKey:
    """Type-safe context key identifier."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Context:
    """
    Immutable context that flows through one request.

    Each stage receives a context and returns a new context with
    additional data. A context is never mutated in place, so a value
    handed to one stage can't change underneath another.
    """

    _data: Dict[Hashable, Any] = field(default_factory=dict)
    _cancelled: bool = False
    _cancel_reason: Optional[str] = None

    @classmethod
    def background(cls) -> "Context":
        """Empty root context for requests that arrive without one."""
        return cls()

    def value(self, key: Hashable, default: Any = None) -> Any:
        """Get value from context."""
        return self._data.get(key, default)

    def with_value(self, key: Hashable, value: Any) -> "Context":
        """
        Return a new context with the key set.
        Context is immutable - this returns a new instance.
        """
        new_data = self._data.copy()
        new_data[key] = value
        return Context(
            _data=new_data,
            _cancelled=self._cancelled,
            _cancel_reason=self._cancel_reason,
        )

    def with_values(self, values: Mapping[Hashable, Any]) -> "Context":
        """Return a new context with multiple keys set."""
        new_data = self._data.copy()
        new_data.update(values)
        return Context(
            _data=new_data,
            _cancelled=self._cancelled,
            _cancel_reason=self._cancel_reason,
        )

    def cancel(self, reason: Optional[str] = None) -> "Context":
        """
        Return a cancelled copy of this context.

        A stage returns the cancelled context from its inbound step to stop
        the pipeline. It should write its own error response first; nothing
        downstream will.
        """
        return Context(
            _data=self._data.copy(),
            _cancelled=True,
            _cancel_reason=reason,
        )

    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def cancel_reason(self) -> Optional[str]:
        return self._cancel_reason

    def has(self, key: Hashable) -> bool:
        """Check if key exists in context."""
        return key in self._data

    def keys(self) -> list:
        """Get all data keys."""
        return list(self._data.keys())

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dict (for logging and debugging)."""
        return {
            "data": {str(k): v for k, v in self._data.items()},
            "cancelled": self._cancelled,
            "cancel_reason": self._cancel_reason,
        }

    def __repr__(self) -> str:
        state = f", cancelled={self._cancel_reason!r}" if self._cancelled else ""
        return f"Context(keys={[str(k) for k in self._data]}{state})"
