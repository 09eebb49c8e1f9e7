"""
Unit tests for correlation module.

Tests correlation ID generation, scoping and per-task isolation.
"""

import asyncio

import pytest

from kframe_control.correlation import (
    correlation_context,
    ensure_correlation_id,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def clear_correlation_id():
    set_correlation_id(None)
    yield
    set_correlation_id(None)


class TestGenerateCorrelationId:
    """Tests for generate_correlation_id function"""

    def test_generates_valid_uuid_format(self):
        """Generated IDs are 32 hex characters"""
        corr_id = generate_correlation_id()

        assert len(corr_id) == 32
        assert all(c in "0123456789abcdef" for c in corr_id)

    def test_multiple_generations_are_unique(self):
        """Multiple calls generate unique IDs"""
        ids = [generate_correlation_id() for _ in range(10)]

        assert len(set(ids)) == len(ids)


class TestCorrelationContext:
    """Tests for correlation_context"""

    def test_restores_previous_id(self):
        """The previous ID is restored on exit"""
        set_correlation_id("outer")

        with correlation_context("inner") as corr_id:
            assert corr_id == "inner"
            assert get_correlation_id() == "inner"

        assert get_correlation_id() == "outer"

    def test_auto_generates(self):
        """An ID is generated when none is given"""
        with correlation_context() as corr_id:
            assert corr_id is not None
            assert get_correlation_id() == corr_id

    def test_no_auto_generate(self):
        """auto_generate=False leaves the ID unset"""
        with correlation_context(auto_generate=False) as corr_id:
            assert corr_id is None

    def test_restores_after_exception(self):
        """The previous ID is restored even if the body raises"""
        with pytest.raises(RuntimeError), correlation_context("inner"):
            raise RuntimeError("boom")

        assert get_correlation_id() is None


class TestEnsureCorrelationId:
    """Tests for ensure_correlation_id"""

    def test_keeps_existing(self):
        """An existing ID is returned unchanged"""
        set_correlation_id("existing")

        assert ensure_correlation_id() == "existing"

    def test_generates_when_missing(self):
        """A missing ID is generated and set"""
        corr_id = ensure_correlation_id()

        assert get_correlation_id() == corr_id


@pytest.mark.asyncio
async def test_tasks_are_isolated():
    """Each connection attempt task sees only its own ID"""
    set_correlation_id("parent")

    async def attempt(corr_id: str) -> str | None:
        set_correlation_id(corr_id)
        await asyncio.sleep(0)
        return get_correlation_id()

    results = await asyncio.gather(attempt("a"), attempt("b"))

    assert results == ["a", "b"]
    assert get_correlation_id() == "parent"
