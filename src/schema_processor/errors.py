"""Error types raised by the schema processing engine."""

from typing import Optional


class SchemaEngineError(Exception):
    """Base class for schema engine errors.

    Carries the name of the model or schema being processed (when known) and the
    underlying error, so the message points at the broken declaration.
    """

    def __init__(
        self, message: str, schema_name: Optional[str] = None, cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.schema_name = schema_name
        self.cause = cause

    def with_schema_name(self, schema_name: str) -> "SchemaEngineError":
        """Attach the model/schema name if the error does not carry one yet."""
        if self.schema_name is None:
            self.schema_name = schema_name
        return self

    def __str__(self) -> str:
        text = self.message
        if self.schema_name:
            text = f"Error processing schema '{self.schema_name}': {text}"
        if self.cause is not None:
            text = f"{text} (caused by: {self.cause})"
        return text


class ResolutionError(SchemaEngineError):
    """A $ref target could not be located or fetched, or repair did not converge."""

    def __init__(
        self,
        message: str,
        ref: Optional[str] = None,
        schema_name: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, schema_name=schema_name, cause=cause)
        self.ref = ref


class ConversionError(SchemaEngineError):
    """A schema could not be represented as an OpenAPI Schema Object."""


class RegistryConflict(SchemaEngineError):
    """A minted component name collided with an existing entry."""
