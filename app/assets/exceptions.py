class AssetLoadError(Exception):
    """Raised when a bundled asset (stylesheet, placeholder) cannot be read."""
