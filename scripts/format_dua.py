#!/usr/bin/env python3
"""
Convert a raw dua text file into the JSON format the server loads.

The raw file holds triplets: Arabic line, transliteration line, English line,
repeated. Blank lines are ignored.

Usage:
  python3 scripts/format_dua.py [input] [output]
  python3 scripts/format_dua.py data/duas/kumayl.raw.txt data/duas/kumayl.json
"""

import argparse
import json
import os
import re
import sys
from typing import Any, Dict, List, Optional

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

DEFAULT_INPUT = "data/duas/iftitah.raw.txt"
DEFAULT_OUTPUT = "data/duas/iftitah.json"


class DuaFormatError(ValueError):
    """Raw input cannot be turned into line triplets."""

    def __init__(self, message: str, hint: str = ""):
        super().__init__(message)
        self.hint = hint


def resolve_path(path: str) -> str:
    return path if os.path.isabs(path) else os.path.join(ROOT_DIR, path)


def resolve_dua_id(file_path: str) -> str:
    stem = os.path.splitext(os.path.basename(file_path))[0]
    return re.sub(r"[^a-zA-Z0-9_-]", "", stem).lower() or "dua"


def resolve_dua_title(dua_id: str) -> str:
    if dua_id == "iftitah":
        return "Duʿāʾ al-Iftitāḥ"
    return f"Duʿāʾ {dua_id}"


def parse_triplets(raw: str) -> List[Dict[str, str]]:
    logical = [line.strip() for line in raw.splitlines()]
    logical = [line for line in logical if line]

    if not logical:
        raise DuaFormatError(
            "The input file is empty after removing blank lines.",
            "Paste triplets: Arabic line, transliteration line, English line, then repeat.",
        )
    if len(logical) % 3 != 0:
        raise DuaFormatError(
            f"Invalid line count: {len(logical)}. Expected a multiple of 3 (Arabic, transliteration, English).",
            "Check for a missing or extra line in one of the triplets.",
        )

    return [
        {"arabic": logical[i], "transliteration": logical[i + 1], "english": logical[i + 2]}
        for i in range(0, len(logical), 3)
    ]


def format_dua(input_path: str, output_path: str) -> Dict[str, Any]:
    """Read input_path, write the JSON document to output_path and return it."""
    if not os.path.exists(input_path):
        raise DuaFormatError(
            f"Input file not found: {input_path}",
            "Create the raw file first, then run this script again.",
        )
    with open(input_path, "r", encoding="utf-8") as f:
        lines = parse_triplets(f.read())

    dua_id = resolve_dua_id(output_path)
    document = {"id": dua_id, "title": resolve_dua_title(dua_id), "lines": lines}

    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(document, f, ensure_ascii=False, indent=2)
    return document


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Format a raw dua text file as JSON")
    parser.add_argument("input", nargs="?", default=DEFAULT_INPUT, help=f"raw triplet file (default {DEFAULT_INPUT})")
    parser.add_argument("output", nargs="?", default=DEFAULT_OUTPUT, help=f"JSON output (default {DEFAULT_OUTPUT})")
    args = parser.parse_args(argv)

    input_path = resolve_path(args.input)
    output_path = resolve_path(args.output)

    try:
        document = format_dua(input_path, output_path)
    except DuaFormatError as e:
        print(f"[error] {e}", file=sys.stderr)
        if e.hint:
            print(f"[hint] {e.hint}", file=sys.stderr)
        return 1

    count = len(document["lines"])
    print(f"[ok] Wrote {output_path}")
    print(f"[ok] Parsed {count} line groups ({count * 3} non-blank lines).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
