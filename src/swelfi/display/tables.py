"""Rich TUI table builders for Swelfi.

Builds Rich :class:`Table` objects for the interface list and the network
scan results.  Can be used standalone for testing table rendering::

    python -m swelfi.display.tables          # render a demo table
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.table import Table

from swelfi.state import AppState
from swelfi.wireless_common import (
    COLOR_TO_RICH,
    Quality,
    SecurityType,
    WirelessInterface,
    WirelessNetwork,
    quality_color,
    quality_to_bars,
    security_color,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _rich_color(rgb: tuple) -> str:  # type: ignore[type-arg]
    """Convert an RGB tuple to a Rich color name."""
    return COLOR_TO_RICH.get(rgb, "white")


def _bar_string(bars: int) -> str:
    """Build a signal-bar string like '▂▄▆█'."""
    chars = ["▂", "▄", "▆", "█"]
    return "".join(chars[i] if i < bars else " " for i in range(4))


# ---------------------------------------------------------------------------
# Interface table
# ---------------------------------------------------------------------------

def build_interface_table(
    interfaces: list[WirelessInterface],
    selected: str = "",
    wlan_on: bool = True,
) -> Table:
    """Build a Rich Table listing the wireless interfaces.

    The selected interface is marked and shows the on/off switch state.
    """
    table = Table(
        title="WLAN Interfaces",
        title_style="bold cyan",
        expand=True,
        show_lines=False,
        padding=(0, 1),
    )
    table.add_column("Sel", justify="center", width=3)
    table.add_column("Interface", style="white", min_width=10)
    table.add_column("SSID", style="grey50", min_width=15, max_width=32)
    table.add_column("Power", justify="center", width=5)

    for iface in interfaces:
        is_selected = iface.name == selected
        if is_selected:
            power = "[green]on[/green]" if wlan_on else "[red]off[/red]"
        else:
            power = ""
        table.add_row(
            "[cyan]>[/cyan]" if is_selected else "",
            escape(iface.name),
            escape(iface.connected_ssid) if iface.connected_ssid else "[dim]-[/dim]",
            power,
            style="bold" if is_selected else "",
        )

    return table


# ---------------------------------------------------------------------------
# Network table
# ---------------------------------------------------------------------------

def build_network_table(
    networks: list[WirelessNetwork] | None,
    selected_network: str = "",
    connected_ssid: str | None = None,
    caption_override: str | None = None,
) -> Table:
    """Build a Rich Table displaying the scanned networks.

    Args:
        networks: Networks in scan order, or ``None`` while a scan is
            in flight.
        selected_network: :meth:`WirelessNetwork.id` of the selected row.
        connected_ssid: ESSID the interface is associated with; matching
            rows show a filled-circle indicator.
        caption_override: Optional caption to use instead of default.
    """
    if caption_override is not None:
        caption = caption_override
    elif networks is None:
        caption = "scanning…"
    else:
        caption = f"{len(networks)} networks found"

    table = Table(
        title="Networks",
        title_style="bold cyan",
        caption=caption,
        caption_style="grey50",
        expand=True,
        show_lines=False,
        padding=(0, 1),
    )
    table.add_column("#", style="grey50", width=3, justify="right")
    table.add_column("Con", justify="center", width=3)
    table.add_column("ESSID", style="white", min_width=15, max_width=30)
    table.add_column("Address", style="grey50", width=17)
    table.add_column("GHz", justify="right", width=6)
    table.add_column("Quality", justify="right", width=7)
    table.add_column("Sig", width=5)
    table.add_column("Security", width=8)

    for i, net in enumerate(networks or [], 1):
        is_connected = bool(connected_ssid) and net.essid == connected_ssid
        is_selected = net.id() == selected_network
        essid = escape(net.essid) if net.essid else "[dim]<hidden>[/dim]"
        q_c = _rich_color(quality_color(net.quality))
        sec_c = _rich_color(security_color(net.security_type))
        bar_str = _bar_string(quality_to_bars(net.quality))

        table.add_row(
            str(i),
            "[green]●[/green]" if is_connected else "",
            essid,
            escape(net.address),
            f"{net.frequency:.3f}",
            f"[{q_c}]{net.quality.value}/{net.quality.limit}[/{q_c}]",
            f"[{q_c}]{bar_str}[/{q_c}]",
            f"[{sec_c}]{net.security_type.value}[/{sec_c}]",
            style="reverse" if is_selected else ("bold" if is_connected else ""),
        )

    return table


def render_state(state: AppState) -> Group:
    """Render the whole application state as a Rich renderable."""
    caption = None
    if not state.wlan_on:
        caption = f"{state.selected_interface or 'interface'} is off"
    if state.power_error:
        caption = f"{caption + '; ' if caption else ''}{state.power_error}"
    return Group(
        build_interface_table(state.interfaces, state.selected_interface, state.wlan_on),
        build_network_table(
            state.networks,
            selected_network=state.selected_network,
            connected_ssid=state.connected_ssid,
            caption_override=caption,
        ),
    )


# ---------------------------------------------------------------------------
# Standalone demo
# ---------------------------------------------------------------------------

def main() -> None:
    """Render demo tables to the terminal."""
    networks = [
        WirelessNetwork(
            address="D4:1A:D1:51:67:F2", frequency=2.437,
            quality=Quality(42, 70), essid="some network",
            security_type=SecurityType.WPA2,
        ),
        WirelessNetwork(
            address="AE:E2:D3:CC:59:F7", frequency=5.18,
            quality=Quality(25, 70), essid="",
            security_type=SecurityType.INVALID,
        ),
    ]
    state = AppState(
        interfaces=[WirelessInterface("wlp64s0", "some network")],
        selected_interface="wlp64s0",
        networks=networks,
        selected_network=networks[0].id(),
        connected_ssid="some network",
    )
    Console().print(render_state(state))


if __name__ == "__main__":
    main()
