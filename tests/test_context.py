"""Tests for the immutable request Context."""

import pytest
from dataclasses import FrozenInstanceError

from contextual import Context, ContextKey


USER = ContextKey("user")


@pytest.mark.unit
class TestContextValues:
    """Deriving and reading context values."""

    def test_background_is_empty(self):
        ctx = Context.background()
        assert ctx.keys() == []
        assert not ctx.is_cancelled()
        assert ctx.cancel_reason is None

    def test_with_value_returns_new_context(self):
        root = Context.background()
        derived = root.with_value(USER, "alice")

        assert derived.value(USER) == "alice"
        assert not root.has(USER)
        assert root.value(USER) is None

    def test_value_default(self):
        assert Context.background().value("missing", "fallback") == "fallback"

    def test_string_and_context_keys_are_distinct(self):
        ctx = Context.background().with_value("user", "plain").with_value(USER, "typed")
        assert ctx.value("user") == "plain"
        assert ctx.value(USER) == "typed"

    def test_with_values_sets_several(self):
        ctx = Context.background().with_values({"a": 1, "b": 2})
        assert ctx.value("a") == 1
        assert ctx.value("b") == 2
        assert sorted(ctx.keys()) == ["a", "b"]

    def test_later_value_shadows_earlier(self):
        first = Context.background().with_value("k", "v1")
        second = first.with_value("k", "v2")
        assert first.value("k") == "v1"
        assert second.value("k") == "v2"

    def test_fields_cannot_be_reassigned(self):
        ctx = Context.background()
        with pytest.raises(FrozenInstanceError):
            ctx._cancelled = True

    def test_to_dict(self):
        ctx = Context.background().with_value(USER, "alice").cancel("nope")
        assert ctx.to_dict() == {
            "data": {"user": "alice"},
            "cancelled": True,
            "cancel_reason": "nope",
        }


@pytest.mark.unit
class TestContextCancellation:
    """Cancellation flag carried on the context."""

    def test_cancel_keeps_values(self):
        ctx = Context.background().with_value("k", "v")
        cancelled = ctx.cancel("unauthorized")

        assert cancelled.is_cancelled()
        assert cancelled.cancel_reason == "unauthorized"
        assert cancelled.value("k") == "v"
        assert not ctx.is_cancelled()

    def test_cancel_without_reason(self):
        cancelled = Context.background().cancel()
        assert cancelled.is_cancelled()
        assert cancelled.cancel_reason is None

    def test_derived_from_cancelled_stays_cancelled(self):
        cancelled = Context.background().cancel("stop")
        derived = cancelled.with_value("k", "v").with_values({"x": 1})
        assert derived.is_cancelled()
        assert derived.cancel_reason == "stop"

    def test_repr_mentions_cancellation(self):
        assert "cancelled='stop'" in repr(Context.background().cancel("stop"))
        assert "cancelled" not in repr(Context.background())
