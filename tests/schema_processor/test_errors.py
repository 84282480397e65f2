"""Tests for schema engine errors."""

from src.schema_processor.errors import (ConversionError, ResolutionError,
                                         SchemaEngineError)


class TestSchemaEngineError:
    """Test cases for error messages."""

    def test_message_includes_schema_name_and_cause(self):
        """Test that the message names the schema and the underlying error."""
        cause = ConnectionError("connection refused")
        error = ResolutionError(
            "Error fetching https://example.com/a.json", ref="https://example.com/a.json", cause=cause
        )
        error.with_schema_name("SuccessResponse")

        message = str(error)

        assert "SuccessResponse" in message
        assert "Error fetching https://example.com/a.json" in message
        assert "connection refused" in message
        assert error.ref == "https://example.com/a.json"

    def test_with_schema_name_keeps_first_name(self):
        """Test that the innermost schema name is kept."""
        error = ConversionError("bad schema", schema_name="Inner")

        error.with_schema_name("Outer")

        assert error.schema_name == "Inner"

    def test_errors_share_base_class(self):
        """Test that engine errors can be caught together."""
        assert issubclass(ResolutionError, SchemaEngineError)
        assert issubclass(ConversionError, SchemaEngineError)
