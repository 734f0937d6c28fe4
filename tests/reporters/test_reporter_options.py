"""Tests for runtime reporter options.

Uses AAA pattern (Arrange-Act-Assert) for clarity.
"""

import pytest
from pydantic import ValidationError

from bweb_log.exceptions import ConfigError
from bweb_log.reporters import ConsoleReporter, FileReporter


class TestSetConfiguration:
    """Tests for AbstractReporter.set_configuration."""

    def test_partial_update_merges(self, context):
        """Fields not in the update keep their values."""
        reporter = FileReporter.init(context, {})

        result = reporter.set_configuration({"response": True})

        assert result == {"params": True, "response": True}
        assert reporter.get_configuration() == result

    def test_unknown_field_rejected_nothing_applied(self, context):
        """One bad field rejects the whole update."""
        # Arrange
        reporter = FileReporter.init(context, {})
        before = reporter.options

        # Act
        with pytest.raises(ConfigError) as exc_info:
            reporter.set_configuration({"response": True, "bogus": 1})

        # Assert
        assert reporter.options is before
        assert reporter.get_configuration() == {"params": True, "response": False}
        assert exc_info.value.validation_errors[0]["loc"] == ["bogus"]

    def test_wrong_type_rejected(self, context):
        """Values are not coerced."""
        reporter = FileReporter.init(context, {})

        with pytest.raises(ConfigError):
            reporter.set_configuration({"params": "yes"})

        assert reporter.options.params is True

    def test_non_mapping_rejected(self, context):
        """The update must be a mapping."""
        reporter = FileReporter.init(context, {})

        with pytest.raises(ConfigError):
            reporter.set_configuration(["response"])

    def test_options_are_immutable(self, context):
        """Options models cannot be mutated in place."""
        reporter = ConsoleReporter.init(context, {})

        with pytest.raises(ValidationError):
            reporter.options.level = "DEBUG"

    @pytest.mark.parametrize("level", ["WARNING", "info", 10])
    def test_console_level_values(self, context, level):
        """Only DEBUG and INFO are valid console levels."""
        reporter = ConsoleReporter.init(context, {})

        with pytest.raises(ConfigError):
            reporter.set_configuration({"level": level})
