"""UI utilities for the pullapod CLI."""

from pullapod.ui.console import console, print_error

__all__ = ["console", "print_error"]
