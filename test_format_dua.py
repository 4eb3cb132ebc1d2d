#!/usr/bin/env python3
"""
Recitation Display - Dua Formatter Test Suite
Raw triplet text -> dua JSON, plus the error exits.

Usage: python3 test_format_dua.py  (or pytest)
"""

import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "scripts"))

from format_dua import DuaFormatError, main, parse_triplets, resolve_dua_id, resolve_dua_title  # noqa: E402
from rd_test_helpers import run_module_tests  # noqa: E402

RAW = """
بِسْمِ اللّهِ
Bismillah
In the name of Allah

اللَّهُمَّ
Allahumma
O Allah
"""


def test_parse_triplets_skips_blank_lines():
    lines = parse_triplets(RAW)
    assert len(lines) == 2
    assert lines[0] == {"arabic": "بِسْمِ اللّهِ", "transliteration": "Bismillah", "english": "In the name of Allah"}
    assert lines[1]["english"] == "O Allah"


def test_parse_triplets_rejects_bad_counts():
    for raw, fragment in (("\n \n", "empty"), ("a\nb\nc\nd\n", "Invalid line count: 4")):
        try:
            parse_triplets(raw)
        except DuaFormatError as e:
            assert fragment in str(e)
            assert e.hint
            continue
        raise AssertionError(f"expected DuaFormatError for {raw!r}")


def test_id_and_title_rules():
    assert resolve_dua_id("data/duas/iftitah.json") == "iftitah"
    assert resolve_dua_id("/tmp/Dua Kumayl!.json") == "duakumayl"
    assert resolve_dua_id("/tmp/***.json") == "dua"
    assert resolve_dua_title("iftitah") == "Duʿāʾ al-Iftitāḥ"
    assert resolve_dua_title("kumayl") == "Duʿāʾ kumayl"


def test_main_writes_json(tmp_path):
    raw_path = os.path.join(str(tmp_path), "kumayl.raw.txt")
    out_path = os.path.join(str(tmp_path), "out", "kumayl.json")
    with open(raw_path, "w", encoding="utf-8") as f:
        f.write(RAW)

    assert main([raw_path, out_path]) == 0
    with open(out_path, encoding="utf-8") as f:
        document = json.load(f)
    assert document["id"] == "kumayl"
    assert document["title"] == "Duʿāʾ kumayl"
    assert len(document["lines"]) == 2


def test_main_reports_errors(tmp_path):
    missing = os.path.join(str(tmp_path), "missing.raw.txt")
    assert main([missing, os.path.join(str(tmp_path), "x.json")]) == 1

    bad = os.path.join(str(tmp_path), "bad.raw.txt")
    with open(bad, "w", encoding="utf-8") as f:
        f.write("one\ntwo\n")
    assert main([bad, os.path.join(str(tmp_path), "bad.json")]) == 1
    assert not os.path.exists(os.path.join(str(tmp_path), "bad.json"))


if __name__ == "__main__":
    sys.exit(run_module_tests(dict(globals()), "DUA FORMATTER TEST RESULTS"))
