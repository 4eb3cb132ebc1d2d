"""
Content store: verse and supplication text keyed by position.

Loading is fail-soft. Missing or broken files log a warning and fall back to
built-in defaults so the controller always has something to show; lookups
report "not found" as a normal result instead of raising.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from .rd_config import DATA_DIR, DEFAULT_DISPLAY_CONFIG, QURAN_FILE
from .rd_models import LookupResult

logger = logging.getLogger(__name__)

DEFAULT_SUPPLICATION = "iftitah"

# Verse counts per surah (1-114), used when no metadata file is present
BUILTIN_AYAH_COUNTS = [
    7, 286, 200, 176, 120, 165, 206, 75, 129, 109,
    123, 111, 43, 52, 99, 128, 111, 110, 98, 135,
    112, 78, 118, 64, 77, 227, 93, 88, 69, 60,
    34, 30, 73, 54, 45, 83, 182, 88, 75, 85,
    54, 53, 89, 59, 37, 35, 38, 29, 18, 45,
    60, 49, 62, 55, 78, 96, 29, 22, 24, 13,
    14, 11, 11, 18, 12, 12, 30, 52, 52, 44,
    28, 28, 20, 56, 40, 31, 50, 40, 46, 42,
    29, 19, 36, 25, 22, 17, 19, 26, 30, 20,
    15, 21, 11, 8, 8, 19, 5, 8, 8, 11,
    11, 8, 3, 9, 5, 4, 7, 3, 6, 3,
    5, 4, 5, 6,
]

PLACEHOLDER_SUPPLICATION = {
    "id": DEFAULT_SUPPLICATION,
    "title": "Duʿāʾ al-Iftitāḥ",
    "lines": [
        {
            "arabic": "أَضِفْ نَصَّ الدُّعَاءِ فِي data/duas/iftitah.raw.txt",
            "transliteration": "Add the dua raw text in data/duas/iftitah.raw.txt",
            "english": "Run scripts/format_dua.py, then restart the server.",
        }
    ],
}


def read_json_file(path: str, fallback: Any) -> Any:
    """Parse a JSON file, returning fallback (and logging why) on any failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read {path}: {e}")
        return fallback


def _entry_number(entry: Any) -> Optional[int]:
    """Positive integer "number" of a dataset entry, or None when it has none."""
    if not isinstance(entry, dict):
        return None
    try:
        number = int(entry.get("number"))
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number > 0 else None


def _count(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError, OverflowError):
        return 0


def builtin_sections() -> List[Dict[str, Any]]:
    return [
        {"number": n, "nameEnglish": f"Surah {n}", "nameArabic": "", "ayahCount": count}
        for n, count in enumerate(BUILTIN_AYAH_COUNTS, start=1)
    ]


class ContentStore:
    """
    Read-only lookups over the scripture and supplication datasets.

    Scripture is addressed by (section, sub-index); supplications by
    (handle, line index). All indexes are 1-based.
    """

    def __init__(
        self,
        sections: Optional[List[Dict[str, Any]]] = None,
        verses: Optional[Dict[int, Dict[int, Dict[str, str]]]] = None,
        supplications: Optional[List[Dict[str, Any]]] = None,
        dataset: Optional[Dict[str, str]] = None,
    ) -> None:
        self._sections: Dict[int, Dict[str, Any]] = {}
        for s in sections if sections is not None else builtin_sections():
            number = _entry_number(s)
            if number is None:
                logger.warning(f"Skipping section metadata without a valid number: {s!r}")
                continue
            self._sections[number] = {
                "number": number,
                "nameEnglish": s.get("nameEnglish") or f"Surah {number}",
                "nameArabic": s.get("nameArabic") or "",
                "ayahCount": _count(s.get("ayahCount")),
            }

        self._verses: Dict[int, Dict[int, Dict[str, str]]] = verses or {}

        self._supplications: Dict[str, Dict[str, Any]] = {}
        for dua in supplications or []:
            self._supplications[dua["id"]] = dua

        self.dataset: Dict[str, str] = dataset or {"path": "", "type": "unknown", "description": ""}

    # ---------------- Scripture ----------------

    def total_sections(self) -> int:
        return len(self._sections) or len(BUILTIN_AYAH_COUNTS)

    def section_bound(self, section_index: int) -> int:
        """Highest valid sub-index: metadata count, else dataset max, else 1."""
        from_meta = self._sections.get(section_index, {}).get("ayahCount", 0)
        if from_meta > 0:
            return from_meta
        from_data = self._verses.get(section_index)
        if not from_data:
            return 1
        return max(from_data.keys())

    def section_meta(self, section_index: int) -> Dict[str, Any]:
        meta = self._sections.get(section_index)
        if meta:
            return dict(meta)
        return {
            "number": section_index,
            "nameEnglish": f"Surah {section_index}",
            "nameArabic": "",
            "ayahCount": self.section_bound(section_index),
        }

    def list_sections(self) -> List[Dict[str, Any]]:
        return [dict(self._sections[n]) for n in sorted(self._sections)]

    def lookup_scripture(self, section_index: int, sub_index: int) -> LookupResult:
        verse = self._verses.get(section_index, {}).get(sub_index)
        if verse is None:
            return LookupResult()
        return LookupResult(
            text=verse.get("arabic", ""),
            transliteration=verse.get("transliteration", ""),
            translation=verse.get("translation", ""),
            found=True,
        )

    # ---------------- Supplications ----------------

    def has_supplication(self, handle: str) -> bool:
        return handle in self._supplications

    def default_supplication_handle(self) -> str:
        if DEFAULT_SUPPLICATION in self._supplications:
            return DEFAULT_SUPPLICATION
        return next(iter(self._supplications), "")

    def supplication_title(self, handle: str) -> str:
        dua = self._supplications.get(handle)
        return dua["title"] if dua else ""

    def supplication_line_bound(self, handle: str) -> int:
        dua = self._supplications.get(handle)
        if not dua:
            return 1
        return len(dua["lines"]) or 1

    def lookup_supplication(self, handle: str, line_index: int) -> LookupResult:
        dua = self._supplications.get(handle)
        if not dua or not 1 <= line_index <= len(dua["lines"]):
            return LookupResult()
        line = dua["lines"][line_index - 1]
        return LookupResult(
            text=line.get("arabic", ""),
            transliteration=line.get("transliteration", ""),
            translation=line.get("english", ""),
            found=True,
        )

    def list_supplications(self) -> List[Dict[str, Any]]:
        items = [
            {"handle": d["id"], "title": d["title"], "lineCount": len(d["lines"])}
            for d in self._supplications.values()
        ]
        return sorted(items, key=lambda d: d["title"].casefold())


# ---------------- Loading ----------------

def resolve_quran_path(data_dir: str, quran_file: str = "") -> str:
    """Explicit file (relative to data_dir's parent) wins, then the full dataset, then the seed."""
    if quran_file:
        if os.path.isabs(quran_file):
            return quran_file
        return os.path.join(os.path.dirname(os.path.abspath(data_dir)), quran_file)
    full_path = os.path.join(data_dir, "quran.full.json")
    if os.path.exists(full_path):
        return full_path
    return os.path.join(data_dir, "quran.json")


def load_verses(path: str) -> Dict[str, Any]:
    data = read_json_file(path, {"meta": {"type": "empty"}, "surahs": []})
    if not isinstance(data, dict):
        data = {}
    meta = data.get("meta")
    if not isinstance(meta, dict):
        meta = {}
    if str(meta.get("type", "")).lower() == "seed":
        logger.warning("Seed dataset loaded. Add data/quran.full.json for full 114-surah content.")

    surahs = data.get("surahs")
    if not isinstance(surahs, list):
        surahs = []

    verses: Dict[int, Dict[int, Dict[str, str]]] = {}
    skipped = 0
    for surah in surahs:
        surah_number = _entry_number(surah)
        if surah_number is None:
            skipped += 1
            continue
        raw_ayahs = surah.get("ayahs")
        ayahs: Dict[int, Dict[str, str]] = {}
        for ayah in raw_ayahs if isinstance(raw_ayahs, list) else []:
            ayah_number = _entry_number(ayah)
            if ayah_number is None:
                skipped += 1
                continue
            ayahs[ayah_number] = {
                "arabic": ayah.get("arabic") or "",
                "translation": ayah.get("translation") or "",
                "transliteration": ayah.get("transliteration") or "",
            }
        verses.setdefault(surah_number, {}).update(ayahs)

    if skipped:
        logger.warning(f"Skipped {skipped} dataset entries without a valid number in {path}")

    return {
        "verses": verses,
        "dataset": {
            "path": path,
            "type": meta.get("type") or "unknown",
            "description": meta.get("description") or "",
        },
    }


def parse_supplication(parsed: Dict[str, Any], fallback_id: str) -> Optional[Dict[str, Any]]:
    """Normalize one supplication document; None when id/title/lines are missing."""
    dua_id = str(parsed.get("id") or fallback_id).strip().lower()
    title = str(parsed.get("title") or dua_id).strip()
    raw_lines = parsed.get("lines")
    lines = []
    if isinstance(raw_lines, list):
        for line in raw_lines:
            line = line if isinstance(line, dict) else {}
            lines.append({
                "arabic": str(line.get("arabic") or "").strip(),
                "transliteration": str(line.get("transliteration") or "").strip(),
                "english": str(line.get("english") or "").strip(),
            })
    if not dua_id or not title or not lines:
        return None
    return {"id": dua_id, "title": title, "lines": lines}


def load_supplications(dua_dir: str) -> List[Dict[str, Any]]:
    if not os.path.isdir(dua_dir):
        logger.warning(f"Dua directory not found at {dua_dir}")
        return []

    try:
        files = sorted(os.listdir(dua_dir))
    except OSError as e:
        logger.warning(f"Failed to read dua directory: {e}")
        return []

    duas = []
    for file_name in files:
        if not file_name.endswith(".json"):
            continue
        parsed = read_json_file(os.path.join(dua_dir, file_name), None)
        if not isinstance(parsed, dict):
            continue
        dua = parse_supplication(parsed, os.path.splitext(file_name)[0])
        if dua is None:
            logger.warning(f"Skipping invalid dua file {file_name} (missing id/title/lines)")
            continue
        duas.append(dua)
    return duas


def load_display_config(data_dir: str = DATA_DIR) -> Dict[str, Any]:
    cfg = dict(DEFAULT_DISPLAY_CONFIG)
    path = os.path.join(data_dir, "config.json")
    if os.path.exists(path):
        loaded = read_json_file(path, {})
        if isinstance(loaded, dict):
            cfg.update(loaded)
    return cfg


def load_content_store(data_dir: str = DATA_DIR, quran_file: str = QURAN_FILE) -> ContentStore:
    """Build the content store from data_dir; never raises for missing data."""
    metadata = read_json_file(os.path.join(data_dir, "surah-metadata.json"), {"surahs": []})
    if not isinstance(metadata, dict):
        metadata = {}
    sections = metadata.get("surahs")
    if not isinstance(sections, list) or not any(_entry_number(s) for s in sections):
        sections = builtin_sections()

    loaded = load_verses(resolve_quran_path(data_dir, quran_file))

    duas = load_supplications(os.path.join(data_dir, "duas"))
    if not duas:
        duas = [PLACEHOLDER_SUPPLICATION]
        logger.warning("No dua JSON files loaded. Using in-memory placeholder for iftitah.")

    return ContentStore(
        sections=sections,
        verses=loaded["verses"],
        supplications=duas,
        dataset=loaded["dataset"],
    )
