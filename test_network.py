#!/usr/bin/env python3
"""
Recitation Display - LAN Discovery Test Suite
Address selection over a faked psutil interface table.

Usage: python3 test_network.py  (or pytest)
"""

import socket
import sys
from types import SimpleNamespace
from unittest import mock

from recitation_display.rd_network import build_urls, get_lan_ipv4
from rd_test_helpers import run_module_tests


def addr(family, address):
    return SimpleNamespace(family=family, address=address)


def interfaces(**table):
    return mock.patch("recitation_display.rd_network.psutil.net_if_addrs", return_value=table)


def test_prefers_private_address():
    with interfaces(
        lo=[addr(socket.AF_INET, "127.0.0.1")],
        docker0=[addr(socket.AF_INET, "8.8.4.4")],
        wlan0=[addr(socket.AF_INET6, "fe80::1"), addr(socket.AF_INET, "192.168.1.20")],
    ):
        assert get_lan_ipv4() == "192.168.1.20"


def test_falls_back_to_any_non_loopback():
    with interfaces(
        lo=[addr(socket.AF_INET, "127.0.0.1")],
        eth0=[addr(socket.AF_INET, "169.254.3.3"), addr(socket.AF_INET, "100.64.0.9")],
    ):
        assert get_lan_ipv4() == "100.64.0.9"


def test_loopback_when_nothing_usable():
    with interfaces(lo=[addr(socket.AF_INET, "127.0.0.1")]):
        assert get_lan_ipv4() == "127.0.0.1"
    with mock.patch("recitation_display.rd_network.psutil.net_if_addrs", side_effect=OSError("no access")):
        assert get_lan_ipv4() == "127.0.0.1"


def test_build_urls():
    assert build_urls("10.0.0.7", 5173) == {
        "controlUrl": "http://10.0.0.7:5173/control",
        "displayUrl": "http://10.0.0.7:5173/display",
    }


if __name__ == "__main__":
    sys.exit(run_module_tests(dict(globals()), "LAN DISCOVERY TEST RESULTS"))
