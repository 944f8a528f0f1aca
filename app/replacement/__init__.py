from app.replacement.base import BaseGenerator
from app.replacement.registry import (
    FUNCTION_ERROR,
    UNKNOWN_FUNCTION,
    ReplacementRegistry,
)

__all__ = [
    "BaseGenerator",
    "FUNCTION_ERROR",
    "ReplacementRegistry",
    "UNKNOWN_FUNCTION",
]
