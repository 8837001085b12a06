"""
Tests for Outcome
"""

import pytest

from networking.exceptions import TransportError
from networking.outcome import Outcome


class TestOutcome:
    """Success and failure values"""

    def test_success(self):
        """Should expose the value and unwrap to it"""
        outcome = Outcome.success(b"body")

        assert outcome.ok
        assert outcome.unwrap() == b"body"

    def test_failure(self):
        """Should expose the error and raise it from unwrap()"""
        error = TransportError()
        outcome = Outcome.failure(error)

        assert not outcome.ok
        assert outcome.error is error
        with pytest.raises(TransportError):
            outcome.unwrap()

    def test_success_with_none_value(self):
        """Should count a None value as success"""
        assert Outcome.success(None).ok
