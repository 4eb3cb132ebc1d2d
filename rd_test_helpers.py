#!/usr/bin/env python3
"""
Shared fixtures for the recitation display test suites.

Small in-memory content, a controllable clock, and a recording transport so
the coordinator can be driven without sockets.
"""

import inspect
import pathlib
import tempfile
import traceback
from typing import Any, Dict, List, Optional

from recitation_display.rd_content import ContentStore
from recitation_display.rd_coordinator import DisplayCoordinator

SECTIONS = [
    {"number": 1, "nameEnglish": "Al-Fatihah", "nameArabic": "الفاتحة", "ayahCount": 7},
    {"number": 2, "nameEnglish": "Al-Baqarah", "nameArabic": "البقرة", "ayahCount": 286},
    {"number": 3, "nameEnglish": "Ali 'Imran", "nameArabic": "آل عمران", "ayahCount": 200},
]

VERSES = {
    1: {n: {"arabic": f"fatihah-{n}", "translation": f"Fatihah {n}", "transliteration": f"f{n}"}
        for n in range(1, 8)},
    2: {
        1: {"arabic": "الم", "translation": "Alif, Lam, Meem.", "transliteration": "Alif-Lam-Mim"},
        255: {"arabic": "ٱللَّهُ لَآ إِلَٰهَ إِلَّا هُوَ", "translation": "Allah - there is no deity except Him",
              "transliteration": "Allahu la ilaha illa huwa"},
    },
}

SUPPLICATIONS = [
    {
        "id": "iftitah",
        "title": "Duʿāʾ al-Iftitāḥ",
        "lines": [
            {"arabic": "a1", "transliteration": "t1", "english": "e1"},
            {"arabic": "a2", "transliteration": "t2", "english": "e2"},
            {"arabic": "a3", "transliteration": "t3", "english": "e3"},
        ],
    },
    {
        "id": "kumayl",
        "title": "Duʿāʾ Kumayl",
        "lines": [
            {"arabic": "k1", "transliteration": "kt1", "english": "ke1"},
            {"arabic": "k2", "transliteration": "kt2", "english": "ke2"},
        ],
    },
]


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, secs: float) -> None:
        self.now += secs


class RecordingTransport:
    """emit(handle, message) stand-in that keeps every message per handle."""

    def __init__(self):
        self.sent: List[tuple] = []
        self.failing = set()

    def __call__(self, handle: Any, message: Dict[str, Any]) -> None:
        if handle in self.failing:
            raise ConnectionError(f"socket {handle} is gone")
        self.sent.append((handle, message))

    def messages(self, handle: Any, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        return [m for h, m in self.sent if h == handle and (kind is None or m.get("type") == kind)]

    def last(self, handle: Any, kind: Optional[str] = None) -> Optional[Dict[str, Any]]:
        found = self.messages(handle, kind)
        return found[-1] if found else None

    def count(self, kind: str) -> int:
        return sum(1 for _, m in self.sent if m.get("type") == kind)

    def clear(self) -> None:
        self.sent.clear()


def make_store() -> ContentStore:
    return ContentStore(
        sections=SECTIONS,
        verses=VERSES,
        supplications=SUPPLICATIONS,
        dataset={"path": "memory", "type": "test", "description": "fixture"},
    )


def make_coordinator(timeout_secs: float = 30.0):
    """Returns (coordinator, transport, clock)."""
    clock = FakeClock()
    transport = RecordingTransport()
    coordinator = DisplayCoordinator(
        make_store(),
        transport,
        clock=clock,
        controller_timeout_secs=timeout_secs,
        heartbeat_interval_secs=10.0,
        monitor_interval_secs=5.0,
        urls={"controlUrl": "http://192.168.1.20:5173/control", "displayUrl": "http://192.168.1.20:5173/display"},
    )
    return coordinator, transport, clock


def join(coordinator: DisplayCoordinator, handle: str, role: str):
    """Connect a socket and declare its role; returns the session."""
    session = coordinator.connect(handle)
    coordinator.handle_message(handle, {"type": "declare-role", "role": role})
    return session


def run_module_tests(namespace: Dict[str, Any], title: str) -> int:
    """Direct-run summary for `python3 test_x.py`, mirroring the pytest collection."""
    tests = [(name, fn) for name, fn in namespace.items() if name.startswith("test_") and callable(fn)]
    results = []
    for name, fn in tests:
        kwargs = {}
        if "tmp_path" in inspect.signature(fn).parameters:
            kwargs["tmp_path"] = pathlib.Path(tempfile.mkdtemp())
        try:
            fn(**kwargs)
            results.append((name, True))
        except Exception:
            traceback.print_exc()
            results.append((name, False))

    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)
    for name, ok in results:
        status = "✅ PASSED" if ok else "❌ FAILED"
        print(f"{name:55} {status}")

    passed = sum(1 for _, ok in results if ok)
    print(f"\nTotal: {passed}/{len(results)} tests passed")
    return 0 if passed == len(results) else 1
