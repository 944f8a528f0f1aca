class SelectorError(Exception):
    """Raised when a CSS selector cannot be parsed."""
