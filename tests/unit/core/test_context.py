"""
Tests for CallContext.
"""

import time

import pytest

from webservice.core.context import CallContext, background


class TestCallContext:

    def test_background_has_no_deadline(self):
        ctx = background()

        assert ctx.deadline is None
        assert ctx.remaining() is None
        assert ctx.expired is False

    def test_request_ids_are_unique(self):
        assert background().request_id != background().request_id

    def test_with_timeout_sets_deadline(self):
        ctx = background().with_timeout(10)

        assert 9 < ctx.remaining() <= 10
        assert ctx.expired is False

    def test_with_timeout_keeps_earlier_deadline(self):
        ctx = background().with_timeout(1).with_timeout(60)

        assert ctx.remaining() <= 1

    def test_with_timeout_shortens_later_deadline(self):
        ctx = background().with_timeout(60).with_timeout(1)

        assert ctx.remaining() <= 1

    def test_expired(self):
        ctx = background().with_timeout(0)
        time.sleep(0.001)

        assert ctx.expired is True
        assert ctx.remaining() < 0

    def test_derived_context_keeps_request_id(self):
        ctx = background()

        assert ctx.with_timeout(1).request_id == ctx.request_id

    def test_values_are_immutable_and_inherited(self):
        parent = CallContext().with_value("tenant", "acme")
        child = parent.with_value("user", "ann")

        assert parent.value("user") is None
        assert child.value("tenant") == "acme"
        assert child.value("missing", "x") == "x"
        with pytest.raises(TypeError):
            child.values["tenant"] = "other"

    def test_frozen(self):
        with pytest.raises(AttributeError):
            background().deadline = 1.0
