"""Shared data structures and helpers for Swelfi."""

from __future__ import annotations

import enum
import os
import re
import subprocess
from dataclasses import dataclass
from typing import Any, Protocol

# -- Colors (RGB tuples, mapped to Rich color names for the TUI) --
GREEN = (0, 255, 0)
YELLOW = (255, 255, 0)
RED = (255, 0, 0)

# Canonical mapping from RGB tuple to Rich color name.
COLOR_TO_RICH: dict[tuple, str] = {
    GREEN: "green",
    YELLOW: "yellow",
    RED: "red",
}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ScanError(Exception):
    """An external tool failed or produced output we cannot decode."""


class ParseError(Exception):
    """A single record could not be extracted from tool output."""


class AnchorNotFound(ParseError):
    """A literal anchor does not occur in the remaining text."""


class FieldFormatError(ParseError):
    """An anchor matched but the field after it is malformed."""


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

class SecurityType(enum.Enum):
    """Closed classification of a cell's IEEE 802.11 capability line."""

    WPA2 = "WPA2"
    WPA3 = "WPA3"
    WPA = "WPA"
    INVALID = "Invalid"


@dataclass(frozen=True)
class Quality:
    """Signal quality as reported by the driver, e.g. ``42/70``."""

    value: int
    limit: int


@dataclass(frozen=True)
class WirelessInterface:
    """A wireless interface reported by ``iw dev``."""

    name: str                           # e.g., "wlp64s0"
    connected_ssid: str | None = None   # set only when associated


@dataclass(frozen=True)
class WirelessNetwork:
    """One cell from an ``iwlist`` scan."""

    address: str        # e.g. "D4:1A:D1:51:67:F2", as printed by iwlist
    frequency: float    # GHz
    quality: Quality
    essid: str          # may be empty for hidden networks
    security_type: SecurityType

    def id(self) -> str:
        """Return the display identity used for network selection."""
        return f"{self.essid} - ({self.address})"


# ---------------------------------------------------------------------------
# Scanner protocol (composition seam)
# ---------------------------------------------------------------------------

class ScannerProtocol(Protocol):
    """Protocol for network scanners.

    Any class with a ``scan(interface)`` method returning
    ``list[WirelessNetwork]`` satisfies this protocol.
    """

    def scan(self, interface: str) -> list[WirelessNetwork]:
        """Scan *interface* and return the detected networks."""
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Command runner protocol (subprocess injection seam)
# ---------------------------------------------------------------------------

class CommandRunner(Protocol):
    """Protocol for running external commands.

    Provides an injection seam so callers can substitute a fake runner in
    tests instead of patching ``subprocess`` globally.
    """

    def run(
        self,
        cmd: list[str],
        *,
        capture_output: bool = True,
        text: bool = True,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess[Any]:
        """Run *cmd* and return a CompletedProcess."""
        ...  # pragma: no cover


class SubprocessRunner:
    """Default CommandRunner that delegates to the real ``subprocess`` module."""

    def run(
        self,
        cmd: list[str],
        *,
        capture_output: bool = True,
        text: bool = True,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess[Any]:
        """Run *cmd* via ``subprocess.run``."""
        return subprocess.run(
            cmd,
            capture_output=capture_output,
            text=text,
            timeout=timeout,
            env=env,
        )


def _minimal_env() -> dict[str, str]:
    """Build a minimal environment for subprocess calls.

    Only passes PATH, LC_ALL, and HOME.  ``LC_ALL=C`` keeps the tools'
    output in English so the parser anchors match.
    """
    return {
        "PATH": os.environ.get("PATH", "/usr/sbin:/usr/bin:/sbin:/bin"),
        "LC_ALL": "C",
        "HOME": os.environ.get("HOME", ""),
    }


# ---------------------------------------------------------------------------
# Security / quality helpers
# ---------------------------------------------------------------------------

def classify_security(line: str) -> SecurityType:
    """Map an ``IEEE 802.11`` capability line to a :class:`SecurityType`.

    "WPA2" and "WPA3" both contain "WPA", so the specific tags are tested
    first.
    """
    if "WPA2" in line:
        return SecurityType.WPA2
    if "WPA3" in line:
        return SecurityType.WPA3
    if "WPA" in line:
        return SecurityType.WPA
    return SecurityType.INVALID


def quality_to_bars(quality: Quality) -> int:
    """Convert a quality pair to a bar count (0-4)."""
    if quality.limit <= 0:
        return 0
    ratio = quality.value / quality.limit
    if ratio >= 0.8:
        return 4
    if ratio >= 0.6:
        return 3
    if ratio >= 0.4:
        return 2
    if ratio >= 0.2:
        return 1
    return 0


def quality_color(quality: Quality) -> tuple:
    """Return an RGB color tuple based on signal quality."""
    bars = quality_to_bars(quality)
    if bars >= 3:
        return GREEN
    if bars == 2:
        return YELLOW
    return RED


def security_color(security_type: SecurityType) -> tuple:
    """Return an RGB color tuple based on security type."""
    if security_type is SecurityType.INVALID:
        return RED
    if security_type is SecurityType.WPA:
        return YELLOW
    return GREEN


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

_ADDRESS_RE = re.compile(r"^([0-9a-fA-F]{2}:){5}[0-9a-fA-F]{2}$")
_IFACE_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,14}$")


def is_valid_address(address: str) -> bool:
    """Return True if *address* is a valid MAC address (colon-separated hex)."""
    return bool(_ADDRESS_RE.match(address))


def is_valid_interface_name(name: str) -> bool:
    """Return True if *name* is safe to pass to ``iw``/``iwlist``/``ip``."""
    return bool(_IFACE_NAME_RE.match(name))
