"""Tests for swelfi.scanning.iwlist — network scanning via iwlist."""

from __future__ import annotations

import json
import logging
import subprocess
import sys

import pytest

from swelfi.scanning.iwlist import (
    IwlistScanner,
    main as iwlist_main,
    network_to_dict,
    parse_iwlist_output,
    scan_networks,
)
from swelfi.source import IwToolSource
from swelfi.wireless_common import Quality, ScanError, SecurityType, WirelessNetwork


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

VALID_CELL = """Cell 09 - Address: D4:1A:D1:51:67:F2
                    Channel:6
                    Frequency:2.437 GHz (Channel 6)
                    Quality=42/70  Signal level=-68 dBm
                    Encryption key:on
                    ESSID:"some network"
                    Bit Rates:1 Mb/s; 2 Mb/s; 5.5 Mb/s; 11 Mb/s; 18 Mb/s
                              24 Mb/s; 36 Mb/s; 54 Mb/s
                    Bit Rates:6 Mb/s; 9 Mb/s; 12 Mb/s; 48 Mb/s
                    Mode:Master
                    Extra:tsf=00000052cabe36b9
                    Extra: Last beacon: 2216ms ago
                    IE: Unknown: 00086D696E6B616E6574
                    IE: Unknown: 010882848B962430486C
                    IE: Unknown: 32040C121860
                    IE: IEEE 802.11i/WPA2 Version 1
                        Group Cipher : CCMP
                        Pairwise Ciphers (1) : CCMP
                        Authentication Suites (1) : PSK
                    IE: Unknown: 0B050000130000
                    IE: Unknown: DD180050F2020101840003A4000027A4000042435E0062322F00"""

SCAN_OUTPUT = """wlan0     Scan completed :
          Cell 01 - Address: AA:BB:CC:DD:EE:01
                    Channel:1
                    Frequency:2.412 GHz (Channel 1)
                    Quality=70/70  Signal level=-30 dBm
                    Encryption key:on
                    ESSID:"HomeNetwork"
                    IE: IEEE 802.11i/WPA2 Version 1
          Cell 02 - Address: AA:BB:CC:DD:EE:02
                    Channel:36
                    Frequency:5.18 GHz (Channel 36)
                    Quality=30/70  Signal level=-80 dBm
                    Encryption key:off
                    ESSID:"Open Cafe"
          Cell 03 - Address: AA:BB:CC:DD:EE:03
                    Channel:149
                    Frequency:5.745 GHz (Channel 149)
                    Quality=55/70  Signal level=-55 dBm
                    Encryption key:on
                    ESSID:""
                    IE: IEEE 802.11i/WPA3 Version 1
          Cell 04 - Address: AA:BB:CC:DD:EE:04
                    Channel:11
                    Frequency:2.462 GHz (Channel 11)
                    Quality=20/70  Signal level=-90 dBm
                    Encryption key:on
                    ESSID:"Legacy"
                    IE: WPA Version 1
                    IE: IEEE 802.11 WPA Version 1
"""


@pytest.fixture
def scanned():
    return parse_iwlist_output(SCAN_OUTPUT)


class _FakeRunner:
    """A fake CommandRunner for injection-based tests."""

    def __init__(self, stdout: bytes = b"", returncode: int = 0, exc: Exception | None = None):
        self.calls: list[list[str]] = []
        self._stdout = stdout
        self._returncode = returncode
        self._exc = exc

    def run(self, cmd, **kwargs):
        self.calls.append(cmd)
        if self._exc is not None:
            raise self._exc
        return subprocess.CompletedProcess(
            args=cmd, returncode=self._returncode, stdout=self._stdout, stderr=b"",
        )


# ---------------------------------------------------------------------------
# parse_iwlist_output
# ---------------------------------------------------------------------------

class TestParseIwlistOutput:
    """parse_iwlist_output extracts one network per well-formed cell."""

    def test_valid_cell_returns_expected_network(self):
        assert parse_iwlist_output(VALID_CELL) == [
            WirelessNetwork(
                address="D4:1A:D1:51:67:F2",
                frequency=2.437,
                quality=Quality(value=42, limit=70),
                essid="some network",
                security_type=SecurityType.WPA2,
            )
        ]

    def test_quality_not_normalized(self):
        network = parse_iwlist_output(VALID_CELL)[0]
        assert network.quality == Quality(42, 70)

    def test_cell_without_security_line_dropped(self, scanned):
        assert "Open Cafe" not in [n.essid for n in scanned]

    def test_other_cells_survive_dropped_cell(self, scanned):
        assert [n.address for n in scanned] == [
            "AA:BB:CC:DD:EE:01",
            "AA:BB:CC:DD:EE:03",
            "AA:BB:CC:DD:EE:04",
        ]

    def test_order_matches_source_not_quality(self, scanned):
        qualities = [n.quality.value for n in scanned]
        assert qualities == [70, 55, 20]

    def test_hidden_essid_preserved_as_empty(self, scanned):
        assert scanned[1].essid == ""

    def test_wpa3_classified(self, scanned):
        assert scanned[1].security_type is SecurityType.WPA3

    def test_plain_wpa_classified(self, scanned):
        assert scanned[2].security_type is SecurityType.WPA

    def test_frequency_parsed_as_float(self, scanned):
        assert scanned[0].frequency == pytest.approx(2.412)

    def test_empty_string_returns_empty_list(self):
        assert parse_iwlist_output("") == []

    def test_no_scan_results_returns_empty_list(self):
        assert parse_iwlist_output("wlan0     No scan results\n") == []

    def test_anchor_missing_in_last_cell_drops_only_that_cell(self):
        text = VALID_CELL + "\nCell 10 - Address: 00:11:22:33:44:55\n  Frequency:2.4 GHz\n"
        result = parse_iwlist_output(text)
        assert len(result) == 1
        assert result[0].address == "D4:1A:D1:51:67:F2"

    def test_anchor_from_next_cell_not_borrowed(self):
        text = (
            "Cell 01 - Address: 00:11:22:33:44:01\n"
            "  Frequency:2.412 GHz\n"
            "  Quality=10/70\n"
            "Cell 02 - Address: 00:11:22:33:44:02\n"
            "  Frequency:2.437 GHz\n"
            "  Quality=20/70\n"
            "  ESSID:\"second\"\n"
            "  IE: IEEE 802.11i/WPA2 Version 1\n"
        )
        result = parse_iwlist_output(text)
        assert [n.essid for n in result] == ["second"]

    def test_malformed_quality_drops_cell_with_warning(self, caplog):
        text = VALID_CELL.replace("Quality=42/70", "Quality=high/70")
        with caplog.at_level(logging.WARNING, logger="swelfi.scanning.iwlist"):
            assert parse_iwlist_output(text) == []
        assert "malformed" in caplog.text

    @pytest.mark.skipif(
        not hasattr(sys, "set_int_max_str_digits"),
        reason="interpreter has no integer string length limit",
    )
    def test_oversized_quality_drops_only_that_cell(self, caplog):
        huge = VALID_CELL.replace("Cell 09", "Cell 10").replace(
            "Quality=42/70", "Quality=" + "9" * 5000 + "/70",
        )
        with caplog.at_level(logging.WARNING, logger="swelfi.scanning.iwlist"):
            result = parse_iwlist_output(VALID_CELL + "\n" + huge)
        assert [n.quality for n in result] == [Quality(42, 70)]
        assert "malformed" in caplog.text

    def test_malformed_frequency_drops_cell(self):
        text = VALID_CELL.replace("Frequency:2.437", "Frequency:n/a")
        assert parse_iwlist_output(text) == []

    def test_unterminated_essid_drops_cell(self):
        text = VALID_CELL.replace('ESSID:"some network"', 'ESSID:"some network')
        assert parse_iwlist_output(text) == []

    def test_essid_containing_cell_word_not_split(self):
        text = VALID_CELL.replace('ESSID:"some network"', 'ESSID:"Cell Tower 5"')
        result = parse_iwlist_output(text)
        assert [n.essid for n in result] == ["Cell Tower 5"]

    def test_parsed_cell_is_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="swelfi.scanning.iwlist"):
            parse_iwlist_output(VALID_CELL)
        assert "D4:1A:D1:51:67:F2" in caplog.text

    def test_parsing_twice_gives_equal_results(self):
        assert parse_iwlist_output(SCAN_OUTPUT) == parse_iwlist_output(SCAN_OUTPUT)


class TestNetworkToDict:
    def test_fields(self):
        network = parse_iwlist_output(VALID_CELL)[0]
        assert network_to_dict(network) == {
            "address": "D4:1A:D1:51:67:F2",
            "frequency": 2.437,
            "quality": [42, 70],
            "essid": "some network",
            "security_type": "WPA2",
        }


# ---------------------------------------------------------------------------
# scan_networks / IwlistScanner: via fake runner
# ---------------------------------------------------------------------------

class TestScanNetworks:
    """scan_networks runs iwlist and surfaces failures as ScanError."""

    def test_success_returns_networks(self):
        runner = _FakeRunner(stdout=SCAN_OUTPUT.encode())
        result = scan_networks("wlan0", IwToolSource(runner))
        assert len(result) == 3

    def test_uses_sudo_iwlist_scan(self):
        runner = _FakeRunner(stdout=b"")
        scan_networks("wlan0", IwToolSource(runner))
        assert runner.calls == [["sudo", "iwlist", "wlan0", "scan"]]

    def test_no_sudo_runs_iwlist_directly(self):
        runner = _FakeRunner(stdout=b"")
        scan_networks("wlan0", IwToolSource(runner, sudo=False))
        assert runner.calls == [["iwlist", "wlan0", "scan"]]

    def test_nonzero_exit_raises(self):
        with pytest.raises(ScanError):
            scan_networks("wlan0", IwToolSource(_FakeRunner(returncode=255)))

    def test_timeout_raises(self):
        runner = _FakeRunner(exc=subprocess.TimeoutExpired(cmd=["iwlist"], timeout=30))
        with pytest.raises(ScanError):
            scan_networks("wlan0", IwToolSource(runner))

    def test_non_utf8_raises(self):
        runner = _FakeRunner(stdout=b'Cell 01 - Address: AA\n ESSID:"\xff"\n')
        with pytest.raises(ScanError):
            scan_networks("wlan0", IwToolSource(runner))

    def test_empty_scan_returns_empty_list(self):
        runner = _FakeRunner(stdout=b"wlan0     No scan results\n")
        assert scan_networks("wlan0", IwToolSource(runner)) == []


class TestIwlistScanner:
    def test_scan_delegates_to_scan_networks(self):
        runner = _FakeRunner(stdout=VALID_CELL.encode())
        scanner = IwlistScanner(IwToolSource(runner))
        assert [n.essid for n in scanner.scan("wlan0")] == ["some network"]


# ---------------------------------------------------------------------------
# Standalone main
# ---------------------------------------------------------------------------

class TestIwlistMain:
    """The standalone main() prints scan results."""

    def test_no_networks_prints_message(self, monkeypatch, capsys):
        monkeypatch.setattr("swelfi.scanning.iwlist.scan_networks", lambda iface, source: [])
        iwlist_main(["-i", "wlan0"])
        assert "No networks found" in capsys.readouterr().out

    def test_table_output(self, monkeypatch, capsys):
        monkeypatch.setattr(
            "swelfi.scanning.iwlist.scan_networks",
            lambda iface, source: parse_iwlist_output(VALID_CELL),
        )
        iwlist_main(["-i", "wlan0"])
        out = capsys.readouterr().out
        assert "some network" in out
        assert "1 network(s) found" in out

    def test_json_output(self, monkeypatch, capsys):
        monkeypatch.setattr(
            "swelfi.scanning.iwlist.scan_networks",
            lambda iface, source: parse_iwlist_output(VALID_CELL),
        )
        iwlist_main(["-i", "wlan0", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data[0]["essid"] == "some network"
        assert data[0]["security_type"] == "WPA2"

    def test_scan_error_exits_nonzero(self, monkeypatch, capsys):
        def _fail(iface, source):
            raise ScanError("'iwlist' failed")
        monkeypatch.setattr("swelfi.scanning.iwlist.scan_networks", _fail)
        with pytest.raises(SystemExit) as exc_info:
            iwlist_main(["-i", "wlan0"])
        assert exc_info.value.code == 1
        assert "iwlist" in capsys.readouterr().err
