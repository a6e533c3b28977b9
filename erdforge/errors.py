"""Error taxonomy shared by the model, generator, introspector and codec."""


class ErdForgeError(Exception):
    """Base class for every recoverable erdforge error."""


class ValidationError(ErdForgeError):
    """A mutation was rejected (duplicate name, duplicate relationship, blank field)."""


class UnsupportedDialectError(ErdForgeError, ValueError):
    """The requested SQL dialect is not one of the supported engines."""

    def __init__(self, dialect: str, supported=()):
        self.dialect = dialect
        message = f"Unsupported database type: {dialect}"
        if supported:
            message += f" (supported: {', '.join(supported)})"
        super().__init__(message)


class IntrospectionError(ErdForgeError):
    """Wraps a connectivity or catalog-query failure; the original message is kept."""

    def __init__(self, message: str, original: Exception | None = None):
        super().__init__(message)
        self.original = original

    @classmethod
    def wrap(cls, exc: Exception) -> "IntrospectionError":
        if isinstance(exc, cls):
            return exc
        return cls(str(exc) or exc.__class__.__name__, original=exc)


class SerializationError(ErdForgeError):
    """A persisted diagram file is malformed or does not match the expected layout."""
