"""Tests for ResponseCollection."""

from eventron import ResponseCollection


class TestResponseCollection:
    def test_empty_collection(self):
        """first() and last() return None when nothing was pushed."""
        responses = ResponseCollection()

        assert responses.first() is None
        assert responses.last() is None
        assert responses.count() == 0
        assert not responses.stopped()

    def test_push_order(self):
        """Values keep push order; first/last/contains reflect it."""
        responses = ResponseCollection()
        for value in ("x", None, "y"):
            responses.push(value)

        assert list(responses) == ["x", None, "y"]
        assert responses.first() == "x"
        assert responses.last() == "y"
        assert len(responses) == 3
        assert responses.contains(None)
        assert "y" in responses
        assert "z" not in responses

    def test_stopped_flag(self):
        responses = ResponseCollection()
        responses.set_stopped(True)
        assert responses.stopped()
        responses.set_stopped(False)
        assert not responses.stopped()
