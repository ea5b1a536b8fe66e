"""Raw output of the wireless command-line tools.

:class:`IwToolSource` runs ``iw``, ``iwlist`` and ``ip`` and hands back
their standard output as bytes together with a success flag.  It contains
no parsing; :func:`decode_output` turns a result into text or raises
:class:`~swelfi.wireless_common.ScanError`.

All external I/O goes through an injectable
:class:`~swelfi.wireless_common.CommandRunner`.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

from swelfi.wireless_common import (
    CommandRunner,
    ScanError,
    SubprocessRunner,
    _minimal_env,
    is_valid_interface_name,
)

logger = logging.getLogger(__name__)

_DEFAULT_RUNNER = SubprocessRunner()

# Upper bound for the quick, non-scanning commands.
QUERY_TIMEOUT = 5


@dataclass(frozen=True)
class CommandOutput:
    """Captured result of one tool invocation."""

    success: bool
    stdout: bytes = b""


def decode_output(output: CommandOutput, tool: str) -> str:
    """Return *output* as text.

    Raises:
        ScanError: if the command failed or its output is not valid UTF-8.
    """
    if not output.success:
        raise ScanError(f"'{tool}' failed")
    try:
        return output.stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ScanError(f"output of '{tool}' wasn't valid utf-8") from exc


class IwToolSource:
    """Runs the wireless tools and returns their raw output.

    Args:
        runner: Optional CommandRunner for subprocess calls (testing seam).
        sudo: Prefix privileged commands (``iwlist`` scan, ``ip link``)
            with ``sudo``.
        scan_timeout: Timeout for ``iwlist`` scans.  ``None`` waits for the
            tool however long it takes.
    """

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        sudo: bool = True,
        scan_timeout: float | None = None,
    ) -> None:
        self._runner = runner or _DEFAULT_RUNNER
        self._sudo = sudo
        self._scan_timeout = scan_timeout

    def list_interfaces(self) -> CommandOutput:
        """Run ``iw dev``."""
        return self._capture(["iw", "dev"], timeout=QUERY_TIMEOUT)

    def scan_networks(self, interface: str) -> CommandOutput:
        """Run ``iwlist <interface> scan`` (privileged)."""
        if not is_valid_interface_name(interface):
            logger.warning("refusing to scan invalid interface name %r", interface)
            return CommandOutput(False)
        cmd = self._privileged(["iwlist", interface, "scan"])
        return self._capture(cmd, timeout=self._scan_timeout)

    def get_interface_info(self, interface: str) -> CommandOutput:
        """Run ``iw dev <interface> info``."""
        if not is_valid_interface_name(interface):
            logger.warning("refusing to query invalid interface name %r", interface)
            return CommandOutput(False)
        return self._capture(["iw", "dev", interface, "info"], timeout=QUERY_TIMEOUT)

    def set_interface_power(self, interface: str, up: bool) -> bool:
        """Run ``ip link set <interface> up|down`` (privileged).

        Returns:
            True if the command exited with status 0, False otherwise.
        """
        if not is_valid_interface_name(interface):
            logger.warning("refusing to switch invalid interface name %r", interface)
            return False
        cmd = self._privileged(["ip", "link", "set", interface, "up" if up else "down"])
        return self._capture(cmd, timeout=QUERY_TIMEOUT).success

    def _privileged(self, cmd: list[str]) -> list[str]:
        return ["sudo", *cmd] if self._sudo else cmd

    def _capture(self, cmd: list[str], *, timeout: float | None) -> CommandOutput:
        logger.debug("running: %s", " ".join(cmd))
        try:
            result = self._runner.run(
                cmd,
                capture_output=True,
                text=False,
                timeout=timeout,
                env=_minimal_env(),
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as exc:
            logger.debug("%s could not run: %s", cmd[0], exc)
            return CommandOutput(False)

        if result.returncode != 0:
            logger.debug("%s returned non-zero: %d", " ".join(cmd), result.returncode)
            return CommandOutput(False, result.stdout or b"")
        return CommandOutput(True, result.stdout or b"")
