"""Local marketplace API: list, browse, message about and request shared items."""

__version__ = "1.0.0"
