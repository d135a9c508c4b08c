"""
Tests for the exception hierarchy.
"""

import pytest

from reattempt import ConfigurationError, Directly, PolicyLoadError, ReattemptError
from reattempt.testing import CountingOperation


class TestHierarchy:
    """Verify all exceptions inherit from ReattemptError."""

    @pytest.mark.parametrize("exc_class", [ConfigurationError, PolicyLoadError])
    def test_inherits_from_base(self, exc_class):
        assert issubclass(exc_class, ReattemptError)

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(PolicyLoadError, ConfigurationError)

    def test_catching_value_error(self):
        with pytest.raises(ValueError):
            Directly(-1)


class TestAttributes:
    def test_message_and_details(self):
        error = ReattemptError("boom", details={"policy": "fetch"})
        assert str(error) == "boom"
        assert error.message == "boom"
        assert error.details == {"policy": "fetch"}

    def test_details_default_to_empty(self):
        assert ConfigurationError("bad").details == {}

    def test_policy_load_error_path(self):
        error = PolicyLoadError("cannot read", path="/etc/policies.yaml")
        assert error.path == "/etc/policies.yaml"
        assert error.details == {"path": "/etc/policies.yaml"}


class TestOperationFailures:
    """Failures raised by operations are never wrapped."""

    @pytest.mark.asyncio
    async def test_last_failure_is_raised_as_is(self):
        errors = [ConnectionError("first"), ConnectionError("second")]
        operation = CountingOperation(errors)

        with pytest.raises(ConnectionError) as exc_info:
            await Directly(1).run(operation)

        assert exc_info.value is errors[1]
        assert not isinstance(exc_info.value, ReattemptError)
