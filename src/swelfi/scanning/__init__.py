"""Wireless scanning backends (iw, iwlist)."""

from swelfi.scanning.iw import parse_iw_output  # noqa: F401
from swelfi.scanning.iwlist import IwlistScanner, parse_iwlist_output  # noqa: F401
