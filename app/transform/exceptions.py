class TransformationError(Exception):
    """Base exception for errors raised while applying a transformation."""


class UnknownTransformationError(TransformationError):
    """Raised when no processor is registered for a transformation type."""
