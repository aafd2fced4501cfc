"""Financial Exorcist: spending offerings, demon possessions and soul purity."""

__version__ = "1.0.0"
