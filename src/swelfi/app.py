#!/usr/bin/env python3
"""Swelfi — wireless interfaces and nearby networks in the terminal.

Lists interfaces with ``iw``, scans the selected one with ``iwlist`` on a
background worker, and shows the results in a live Rich table that
refreshes every few seconds.  ``iwlist`` scans and ``ip link`` need root.

Usage:
    swelfi                          # first interface, live view
    swelfi -i wlan1                 # pick the interface
    swelfi --once --json            # scan once, print JSON
    swelfi -i wlan0 --up            # bring wlan0 up, then scan
    swelfi -i wlan0 --down          # bring wlan0 down and exit
    swelfi --list-devices           # list interfaces and exit

While the live view runs, ``kill -USR1 <pid>`` toggles the selected
interface off/on.
"""

from __future__ import annotations

import sys

MIN_PYTHON = (3, 9)
if sys.version_info < MIN_PYTHON:
    sys.exit(f"Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]}+ is required (found {sys.version}).")

import argparse
import json
import logging
import signal
import time

from rich.console import Console
from rich.live import Live

from swelfi.coordinator import RefreshCoordinator
from swelfi.display.tables import build_interface_table, render_state
from swelfi.scanning.iwlist import network_to_dict
from swelfi.source import IwToolSource
from swelfi.state import SETTLE_DELAY, AppState, WirelessController

# -- Defaults --
SCAN_INTERVAL = 10      # seconds between refreshes
TICK_INTERVAL = 0.25    # seconds between polls of the refresh worker
DEBUG_LOG = "/tmp/swelfi_debug.log"
_LOGGER = logging.getLogger("swelfi")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="swelfi",
        description="Swelfi — wireless interface and network scanner",
    )
    parser.add_argument(
        "-i", "--interface",
        help="wireless interface name (default: first one reported by iw)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=SCAN_INTERVAL,
        help=f"seconds between scans in the live view (default: {SCAN_INTERVAL})",
    )
    parser.add_argument(
        "--settle",
        type=float,
        default=SETTLE_DELAY,
        help=f"seconds to wait after bringing an interface up (default: {SETTLE_DELAY})",
    )
    parser.add_argument(
        "--no-sudo",
        action="store_false",
        dest="sudo",
        help="run iwlist and ip directly instead of through sudo",
    )
    power = parser.add_mutually_exclusive_group()
    power.add_argument(
        "--up",
        action="store_true",
        help="bring the interface up before scanning",
    )
    power.add_argument(
        "--down",
        action="store_true",
        help="bring the interface down and exit",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="scan once, print the result and exit",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="with --once, print JSON instead of a table",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="list detected wireless interfaces and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help=f"enable debug logging to stderr and {DEBUG_LOG}",
    )
    return parser.parse_args(argv)


def _setup_logging(debug: bool) -> None:
    """Configure logging; verbose only with --debug."""
    log_format = "%(name)s: %(levelname)s: %(message)s"
    if not debug:
        logging.basicConfig(level=logging.WARNING, format=log_format, stream=sys.stderr)
        return
    logging.basicConfig(level=logging.DEBUG, format=log_format, stream=sys.stderr)
    logging.getLogger("swelfi").setLevel(logging.DEBUG)
    try:
        file_handler = logging.FileHandler(DEBUG_LOG, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)
    except OSError:
        pass  # Debug log file optional; stderr still works


def _scan_once(controller: WirelessController) -> None:
    """Run the queued requests to completion and merge their results."""
    controller.coordinator.stop(timeout=None)
    controller.poll()


def main(argv: list[str] | None = None) -> None:
    """Run the Swelfi live view.

    Handles KeyboardInterrupt (Ctrl+C) gracefully so the terminal is left
    clean when the user exits.
    """
    args = _parse_args(argv)
    _setup_logging(args.debug)
    console = Console()

    source = IwToolSource(sudo=args.sudo)
    coordinator = RefreshCoordinator(source)
    controller = WirelessController(
        source, coordinator, AppState(), settle_delay=args.settle,
    )
    state = controller.state

    controller.load_interfaces(preferred=args.interface)
    if not state.interfaces:
        console.print("[yellow]No wireless interfaces detected.[/yellow]")
        sys.exit(0)

    # --list-devices: print detected interfaces and exit
    if args.list_devices:
        console.print(build_interface_table(state.interfaces, state.selected_interface))
        sys.exit(0)

    if args.interface and state.selected_interface != args.interface:
        console.print(f"[red]Unknown wireless interface: {args.interface}[/red]")
        sys.exit(1)
    _LOGGER.debug(
        "CLI: interface=%s interval=%s settle=%s sudo=%s up=%s down=%s once=%s",
        state.selected_interface, args.interval, args.settle,
        args.sudo, args.up, args.down, args.once,
    )

    # --down: switch off and exit; no scan is requested
    if args.down:
        controller.set_power(False)
        console.print(render_state(state))
        sys.exit(1 if state.power_error else 0)

    coordinator.start()

    if args.up:
        state.wlan_on = False
        controller.set_power(True)
    else:
        controller.refresh()

    if args.once:
        _scan_once(controller)
        if args.json_output:
            print(json.dumps([network_to_dict(n) for n in state.networks or []], indent=2))
        else:
            console.print(render_state(state))
        sys.exit(0 if state.networks is not None else 1)

    toggle_requested = False

    def _request_toggle(signum, frame) -> None:
        nonlocal toggle_requested
        toggle_requested = True

    signal.signal(signal.SIGUSR1, _request_toggle)

    console.print(f"[bold cyan]Swelfi[/bold cyan] — scanning {state.selected_interface}…\n")
    next_refresh = time.monotonic() + args.interval
    try:
        with Live(render_state(state), console=console, refresh_per_second=4, screen=True) as live:
            while True:
                changed = controller.poll()

                if toggle_requested:
                    toggle_requested = False
                    _LOGGER.info("toggling %s", state.selected_interface)
                    controller.toggle()
                    next_refresh = time.monotonic() + args.interval
                    changed = True

                if time.monotonic() >= next_refresh:
                    controller.refresh()
                    next_refresh = time.monotonic() + args.interval

                if changed:
                    live.update(render_state(state))
                time.sleep(TICK_INTERVAL)
    except KeyboardInterrupt:
        coordinator.stop(timeout=1)
        console.print("\n[bold cyan]Swelfi[/bold cyan] — stopped.")
        sys.exit(0)


if __name__ == "__main__":
    main()
