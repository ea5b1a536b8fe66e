"""Foreground application state and the interface on/off state machine.

:class:`AppState` is owned by the foreground thread and only changes
through :class:`WirelessController`: either by a user action (toggle,
selection) or by applying a message drained from the
:class:`~swelfi.coordinator.RefreshCoordinator`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from swelfi.coordinator import NetworksUpdated, RefreshCoordinator, Response, UpdatePending
from swelfi.scanning.iw import list_interfaces
from swelfi.source import IwToolSource
from swelfi.wireless_common import ScanError, WirelessInterface, WirelessNetwork

logger = logging.getLogger(__name__)

# Seconds to let a freshly raised interface come up before scanning it.
SETTLE_DELAY = 1.0


@dataclass
class AppState:
    """Everything the renderer needs, owned by the foreground thread.

    ``networks`` is ``None`` while a scan is in flight (or before the
    first one completes) and ``[]`` when a completed scan found nothing.
    """

    interfaces: list[WirelessInterface] = field(default_factory=list)
    selected_interface: str = ""
    networks: list[WirelessNetwork] | None = None
    selected_network: str = ""
    connected_ssid: str | None = None
    wlan_on: bool = True
    power_error: str | None = None
    last_request_id: int = 0
    stale_before: int = 0   # responses with a lower request id are ignored

    def connected_network(self) -> WirelessNetwork | None:
        """Return the scanned network the selected interface is associated with."""
        if not self.connected_ssid or not self.networks:
            return None
        for network in self.networks:
            if network.essid == self.connected_ssid:
                return network
        return None


class WirelessController:
    """Applies user actions and scan results to an :class:`AppState`.

    Args:
        source: Raw output source for ``iw`` and ``ip link`` calls.
        coordinator: Background worker that performs network scans.
        state: Initial state (a fresh :class:`AppState` if omitted).
        settle_delay: Delay attached to the refresh after powering up.
    """

    def __init__(
        self,
        source: IwToolSource,
        coordinator: RefreshCoordinator,
        state: AppState | None = None,
        *,
        settle_delay: float = SETTLE_DELAY,
    ) -> None:
        self.source = source
        self.coordinator = coordinator
        self.state = state or AppState()
        self.settle_delay = settle_delay

    # -- Interfaces ---------------------------------------------------------

    def load_interfaces(self, preferred: str | None = None) -> list[WirelessInterface]:
        """List interfaces with ``iw dev`` and select one if needed.

        *preferred* is selected when it is among the listed interfaces;
        otherwise the current selection is kept if still present, else the
        first interface is chosen.  A listing failure leaves an empty list.
        """
        try:
            interfaces = list_interfaces(self.source)
        except ScanError as exc:
            logger.warning("could not list wireless interfaces: %s", exc)
            interfaces = []

        self.state.interfaces = interfaces
        names = [i.name for i in interfaces]
        if preferred in names:
            self.state.selected_interface = preferred
        elif self.state.selected_interface not in names:
            self.state.selected_interface = names[0] if names else ""
        for iface in interfaces:
            if iface.name == self.state.selected_interface:
                self.state.connected_ssid = iface.connected_ssid
        return interfaces

    def select_interface(self, name: str) -> bool:
        """Switch to interface *name* and request a scan of it.

        Returns:
            False if *name* is not a known interface.
        """
        if name not in [i.name for i in self.state.interfaces]:
            logger.warning("unknown interface %r", name)
            return False
        if name == self.state.selected_interface:
            return True

        self.state.selected_interface = name
        self.state.networks = None
        self.state.selected_network = ""
        self.state.connected_ssid = None
        self.state.stale_before = self.coordinator.next_request_id
        self.refresh()
        return True

    # -- Networks -----------------------------------------------------------

    def refresh(self, delay: float | None = None) -> int | None:
        """Request a scan of the selected interface.

        Returns the request id, or None if there is nothing to scan.
        """
        if not self.state.selected_interface or not self.state.wlan_on:
            return None
        request_id = self.coordinator.request_refresh(self.state.selected_interface, delay)
        self.state.last_request_id = request_id
        return request_id

    def select_network(self, network_id: str) -> bool:
        """Select the network whose :meth:`~WirelessNetwork.id` is *network_id*."""
        for network in self.state.networks or []:
            if network.id() == network_id:
                self.state.selected_network = network_id
                return True
        return False

    # -- Power state machine -------------------------------------------------

    def set_power(self, on: bool) -> None:
        """Turn the selected interface on or off.

        Off clears the network list and issues no scan.  On raises the
        link and requests one scan after the settle delay.  The flag
        records what was asked for: a failed ``ip link`` call is logged
        and kept in ``power_error`` but does not revert it.
        """
        state = self.state
        if on == state.wlan_on:
            return
        state.wlan_on = on
        interface = state.selected_interface

        if not on:
            state.networks = []
            state.selected_network = ""
            state.connected_ssid = None
            state.stale_before = self.coordinator.next_request_id

        if not interface:
            return

        if self.source.set_interface_power(interface, on):
            state.power_error = None
        else:
            state.power_error = f"could not set {interface} {'up' if on else 'down'}"
            logger.warning("%s", state.power_error)

        if on:
            self.refresh(delay=self.settle_delay)

    def toggle(self) -> bool:
        """Flip the on/off flag and return the new value."""
        self.set_power(not self.state.wlan_on)
        return self.state.wlan_on

    # -- Message delivery ----------------------------------------------------

    def apply(self, message: Response) -> bool:
        """Merge one coordinator message into the state.

        Returns:
            True if the state changed.
        """
        state = self.state
        if message.interface != state.selected_interface:
            logger.debug("ignoring %s for unselected interface", type(message).__name__)
            return False
        if message.request_id < state.stale_before:
            logger.debug(
                "ignoring stale %s (request %d < %d)",
                type(message).__name__, message.request_id, state.stale_before,
            )
            return False

        if isinstance(message, UpdatePending):
            state.networks = None
            return True

        if isinstance(message, NetworksUpdated):
            state.networks = message.networks
            state.connected_ssid = message.connected_ssid
            if state.selected_network not in [n.id() for n in message.networks]:
                state.selected_network = ""
            if not state.selected_network and message.networks:
                connected = state.connected_network()
                state.selected_network = (connected or message.networks[0]).id()
            return True

        return False

    def poll(self) -> bool:
        """Drain pending coordinator messages without blocking.

        Returns:
            True if any message changed the state (the caller should redraw).
        """
        changed = False
        for message in self.coordinator.poll():
            if self.apply(message):
                changed = True
        return changed
