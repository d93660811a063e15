"""HR masterdata service with per-role column permissions."""

__version__ = "0.1.0"
