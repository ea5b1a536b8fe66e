"""Wireless interface discovery via ``iw dev``.

Extracts interface names, and the SSID an interface is associated with,
from ``iw dev`` / ``iw dev <iface> info`` output.  It can also be invoked
as a standalone tool::

    python -m swelfi.scanning.iw                  # list interfaces
    python -m swelfi.scanning.iw --json           # JSON output
"""

from __future__ import annotations

import argparse
import json
import logging

from swelfi.scanning.anchors import TextCursor
from swelfi.source import IwToolSource, decode_output
from swelfi.wireless_common import ScanError, WirelessInterface

logger = logging.getLogger(__name__)

INTERFACE = "Interface "
SSID = "ssid "


# ---------------------------------------------------------------------------
# iw output parsing
# ---------------------------------------------------------------------------

def parse_iw_output(output: str) -> list[WirelessInterface]:
    """Parse ``iw dev`` output into a list of WirelessInterface objects.

    Every ``Interface <name>`` line starts a record.  If an ``ssid <name>``
    line follows before the next interface, it becomes the record's
    ``connected_ssid``.  Anything else, including ``Unnamed/non-netdev
    interface`` blocks, is skipped.  Returns an empty list when no
    interface is found.
    """
    interfaces: list[WirelessInterface] = []
    cursor = TextCursor(output)

    while True:
        start = cursor.find(INTERFACE)
        if start is None:
            break
        cursor.pos = start + len(INTERFACE)
        name = cursor.rest_of_line().strip()

        # The ssid line only counts if it belongs to this interface's block.
        next_start = cursor.find(INTERFACE)
        block = TextCursor(
            output, cursor.pos, cursor.end if next_start is None else next_start,
        )
        connected_ssid: str | None = None
        if block.find(SSID) is not None:
            block.skip_past(SSID)
            connected_ssid = block.rest_of_line()

        if not name:
            logger.debug("skipping interface block without a name at %d", start)
        else:
            interfaces.append(WirelessInterface(name=name, connected_ssid=connected_ssid))

        if next_start is None:
            break
        cursor.pos = next_start

    logger.debug("iw: %d interface(s) parsed", len(interfaces))
    return interfaces


def get_connected_ssid(output: str) -> str | None:
    """Return the associated SSID from ``iw dev <iface> info`` output."""
    interfaces = parse_iw_output(output)
    if not interfaces:
        return None
    return interfaces[0].connected_ssid


# ---------------------------------------------------------------------------
# Live queries (require iw on the system)
# ---------------------------------------------------------------------------

def list_interfaces(source: IwToolSource | None = None) -> list[WirelessInterface]:
    """List wireless interfaces with ``iw dev``.

    Raises:
        ScanError: if ``iw`` is unavailable, fails, or emits non-UTF-8 text.
    """
    source = source or IwToolSource()
    return parse_iw_output(decode_output(source.list_interfaces(), "iw"))


def query_connected_ssid(interface: str, source: IwToolSource | None = None) -> str | None:
    """Return the SSID *interface* is associated with, or None.

    Raises:
        ScanError: if ``iw`` is unavailable, fails, or emits non-UTF-8 text.
    """
    source = source or IwToolSource()
    return get_connected_ssid(decode_output(source.get_interface_info(interface), "iw"))


# ---------------------------------------------------------------------------
# Standalone CLI
# ---------------------------------------------------------------------------

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for standalone invocation."""
    parser = argparse.ArgumentParser(
        description="List wireless interfaces via iw and print results.",
    )
    parser.add_argument(
        "--json", action="store_true", dest="json_output",
        help="Output as JSON instead of a table",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """List wireless interfaces and print them to stdout."""
    args = _parse_args(argv)
    try:
        interfaces = list_interfaces()
    except ScanError as exc:
        logger.warning("interface listing failed: %s", exc)
        interfaces = []

    if args.json_output:
        data = [
            {"name": i.name, "connected_ssid": i.connected_ssid}
            for i in interfaces
        ]
        print(json.dumps(data, indent=2))
        return

    if not interfaces:
        print("No wireless interfaces found.")
        return
    print(f"{'Interface':<16} {'SSID':<32}")
    print("-" * 49)
    for i in interfaces:
        print(f"{i.name:<16} {i.connected_ssid or '-':<32}")


if __name__ == "__main__":
    main()
