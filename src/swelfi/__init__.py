"""Swelfi: wireless interfaces and nearby networks in the terminal."""

__version__ = "0.1.0"
