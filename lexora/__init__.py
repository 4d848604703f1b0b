"""LEXORA - token sales and commission tracking service."""

__version__ = "1.0.0"
