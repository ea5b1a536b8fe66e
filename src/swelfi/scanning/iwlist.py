"""Wireless network scanning via ``iwlist <iface> scan``.

Each ``Cell NN - Address: ...`` block of the scan output becomes one
:class:`~swelfi.wireless_common.WirelessNetwork`.  Only five fields are
extracted, each located by a literal anchor, in this order::

    Cell 09 - Address: D4:1A:D1:51:67:F2
              Frequency:2.437 GHz (Channel 6)
              Quality=42/70  Signal level=-68 dBm
              ESSID:"some network"
              IE: IEEE 802.11i/WPA2 Version 1

A cell that lacks one of the anchors, or whose numbers are malformed, is
dropped and scanning continues with the next cell.  Can also be run
standalone::

    sudo python -m swelfi.scanning.iwlist -i wlan0           # print table
    sudo python -m swelfi.scanning.iwlist -i wlan0 --json    # JSON output
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys

from swelfi.scanning.anchors import TextCursor
from swelfi.source import IwToolSource, decode_output
from swelfi.wireless_common import (
    AnchorNotFound,
    FieldFormatError,
    Quality,
    ScanError,
    WirelessNetwork,
    classify_security,
    is_valid_address,
)

logger = logging.getLogger(__name__)

CELL = "Cell "
ADDRESS = "- Address: "
FREQUENCY = "Frequency:"
QUALITY = "Quality="
ESSID = "ESSID:"
IEEE = "IEEE 802.11"

# A cell delimiter is "Cell " followed by the cell number and the address
# label, so "Cell " inside an ESSID does not split a record.
_CELL_RE = re.compile(re.escape(CELL) + r"\d+ " + re.escape(ADDRESS))


# ---------------------------------------------------------------------------
# iwlist output parsing
# ---------------------------------------------------------------------------

def _parse_cell(cursor: TextCursor) -> WirelessNetwork:
    """Extract one network from a cursor confined to a single cell."""
    cursor.skip_past(CELL)
    cursor.skip_past_on_line(ADDRESS)
    address = cursor.rest_of_line().strip()

    cursor.skip_past(FREQUENCY)
    frequency = cursor.take_float()

    cursor.skip_past(QUALITY)
    value = cursor.take_int()
    cursor.expect("/")
    limit = cursor.take_int()

    cursor.skip_past(ESSID)
    essid = cursor.take_quoted()

    cursor.skip_past(IEEE)
    security_type = classify_security(cursor.rest_of_line())

    return WirelessNetwork(
        address=address,
        frequency=frequency,
        quality=Quality(value=value, limit=limit),
        essid=essid,
        security_type=security_type,
    )


def parse_iwlist_output(output: str) -> list[WirelessNetwork]:
    """Parse ``iwlist scan`` output into a list of WirelessNetwork objects.

    Networks are returned in the order the cells appear; nothing is
    sorted.  Cells that fail to parse are skipped.
    """
    networks: list[WirelessNetwork] = []
    match = _CELL_RE.search(output)

    while match is not None:
        next_match = _CELL_RE.search(output, match.end())
        end = next_match.start() if next_match else len(output)
        cursor = TextCursor(output, match.start(), end)

        try:
            network = _parse_cell(cursor)
        except AnchorNotFound as exc:
            logger.debug("dropping cell at %d: anchor %r not found", match.start(), str(exc))
        except FieldFormatError as exc:
            logger.warning("dropping cell at %d: malformed field: %s", match.start(), exc)
        else:
            if not is_valid_address(network.address):
                logger.debug("cell at %d has unusual address %r", match.start(), network.address)
            logger.debug(
                "cell: address=%s frequency=%s quality=%d/%d essid=%r security=%s",
                network.address,
                network.frequency,
                network.quality.value,
                network.quality.limit,
                network.essid,
                network.security_type.value,
            )
            networks.append(network)

        match = next_match

    logger.debug("iwlist: %d network(s) parsed", len(networks))
    return networks


def network_to_dict(network: WirelessNetwork) -> dict:
    """Return a JSON-serializable dict for *network*."""
    return {
        "address": network.address,
        "frequency": network.frequency,
        "quality": [network.quality.value, network.quality.limit],
        "essid": network.essid,
        "security_type": network.security_type.value,
    }


# ---------------------------------------------------------------------------
# Live scanning (requires iwlist and root on the system)
# ---------------------------------------------------------------------------

def scan_networks(interface: str, source: IwToolSource | None = None) -> list[WirelessNetwork]:
    """Scan for wireless networks on *interface* using iwlist.

    Raises:
        ScanError: if ``iwlist`` is unavailable, fails, or emits non-UTF-8
            text.  A scan that finds nothing returns an empty list.
    """
    source = source or IwToolSource()
    return parse_iwlist_output(decode_output(source.scan_networks(interface), "iwlist"))


class IwlistScanner:
    """Scanner that uses iwlist to detect wireless networks.

    Wraps :func:`scan_networks` into a class conforming to
    :class:`~swelfi.wireless_common.ScannerProtocol`.
    """

    def __init__(self, source: IwToolSource | None = None) -> None:
        self._source = source or IwToolSource()

    def scan(self, interface: str) -> list[WirelessNetwork]:
        """Scan *interface* for wireless networks via iwlist."""
        return scan_networks(interface, self._source)


# ---------------------------------------------------------------------------
# Standalone CLI
# ---------------------------------------------------------------------------

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for standalone invocation."""
    parser = argparse.ArgumentParser(
        description="Scan wireless networks via iwlist and print results.",
    )
    parser.add_argument(
        "-i", "--interface", required=True,
        help="Wireless interface to scan",
    )
    parser.add_argument(
        "--no-sudo", action="store_false", dest="sudo",
        help="Run iwlist directly instead of through sudo",
    )
    parser.add_argument(
        "--json", action="store_true", dest="json_output",
        help="Output as JSON instead of a table",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Scan wireless networks and print results to stdout."""
    args = _parse_args(argv)
    try:
        networks = scan_networks(args.interface, IwToolSource(sudo=args.sudo))
    except ScanError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.json_output:
        print(json.dumps([network_to_dict(n) for n in networks], indent=2))
        return

    if not networks:
        print("No networks found.")
        return
    print(f"{'Address':<18} {'ESSID':<25} {'GHz':>6} {'Quality':>7} {'Security':<8}")
    print("-" * 68)
    for n in networks:
        quality = f"{n.quality.value}/{n.quality.limit}"
        print(
            f"{n.address:<18} {n.essid:<25} {n.frequency:>6.3f} "
            f"{quality:>7} {n.security_type.value:<8}"
        )
    print(f"\n{len(networks)} network(s) found.")


if __name__ == "__main__":
    main()
