"""
LAN address discovery, isolated behind a tiny API.

The phone needs a reachable URL for the control page, so pick the address a
device on the same Wi-Fi is most likely to reach. Fails soft to 127.0.0.1.
"""

import ipaddress
import logging
import socket
from typing import Dict, List

import psutil

logger = logging.getLogger(__name__)

PRIVATE_NETWORKS = [
    ipaddress.IPv4Network("10.0.0.0/8"),
    ipaddress.IPv4Network("172.16.0.0/12"),
    ipaddress.IPv4Network("192.168.0.0/16"),
]


def _ipv4_candidates() -> List[ipaddress.IPv4Address]:
    try:
        interfaces = psutil.net_if_addrs()
    except Exception as e:
        logger.warning(f"Interface probe failed: {e}")
        return []

    found = []
    for addrs in interfaces.values():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.IPv4Address(addr.address)
            except ValueError:
                continue
            if ip.is_loopback or ip.is_link_local:
                continue
            found.append(ip)
    return found


def get_lan_ipv4() -> str:
    """First private IPv4 (10/8, 172.16/12, 192.168/16), else first IPv4, else loopback."""
    candidates = _ipv4_candidates()
    private = [ip for ip in candidates if any(ip in net for net in PRIVATE_NETWORKS)]
    if private:
        return str(private[0])
    if candidates:
        return str(candidates[0])
    return "127.0.0.1"


def build_urls(host: str, port: int) -> Dict[str, str]:
    return {
        "controlUrl": f"http://{host}:{port}/control",
        "displayUrl": f"http://{host}:{port}/display",
    }
