"""
Interactive regular-expression highlighting.

The core package is UI-agnostic; hilock.ui renders highlights in PyQt6
text widgets.
"""

__version__ = "1.0.0"
