#!/usr/bin/env python3
"""
Recitation Display - Content Store Test Suite
Dataset/metadata/dua loading from disk and the fail-soft fallbacks.

Usage: python3 test_content_store.py  (or pytest)
"""

import json
import os
import sys

from recitation_display.rd_content import (
    ContentStore, load_content_store, load_display_config, resolve_quran_path,
)
from rd_test_helpers import make_store, run_module_tests


def write_json(path, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)


def verses_doc(kind, surahs):
    return {
        "meta": {"type": kind, "description": f"{kind} dataset"},
        "surahs": [
            {"number": n, "ayahs": [{"number": a, "arabic": f"{n}:{a}", "translation": f"t{n}:{a}"} for a in ayahs]}
            for n, ayahs in surahs.items()
        ],
    }


def test_empty_data_dir_falls_back(tmp_path):
    store = load_content_store(str(tmp_path))
    assert store.total_sections() == 114
    assert store.section_bound(2) == 286
    assert store.section_bound(114) == 6
    assert store.section_meta(2)["nameEnglish"] == "Surah 2"
    assert store.dataset["type"] == "empty"
    assert store.default_supplication_handle() == "iftitah"
    assert store.supplication_line_bound("iftitah") == 1
    assert store.lookup_scripture(1, 1).found is False


def test_full_dataset_preferred_over_seed(tmp_path):
    data_dir = str(tmp_path)
    write_json(os.path.join(data_dir, "quran.json"), verses_doc("seed", {1: [1]}))
    write_json(os.path.join(data_dir, "quran.full.json"), verses_doc("full", {1: [1, 2], 2: [255]}))
    store = load_content_store(data_dir)
    assert store.dataset["type"] == "full"
    found = store.lookup_scripture(2, 255)
    assert found.found is True
    assert found.text == "2:255"
    assert found.translation == "t2:255"
    assert found.transliteration == ""


def test_explicit_quran_file(tmp_path):
    data_dir = os.path.join(str(tmp_path), "data")
    write_json(os.path.join(str(tmp_path), "custom", "q.json"), verses_doc("custom", {3: [1]}))
    assert resolve_quran_path(data_dir, "custom/q.json") == os.path.join(str(tmp_path), "custom", "q.json")
    store = load_content_store(data_dir, quran_file="custom/q.json")
    assert store.dataset["type"] == "custom"
    assert store.lookup_scripture(3, 1).found is True


def test_metadata_file_drives_sections(tmp_path):
    data_dir = str(tmp_path)
    write_json(os.path.join(data_dir, "surah-metadata.json"), {"surahs": [
        {"number": 1, "nameEnglish": "Al-Fatihah", "nameArabic": "الفاتحة", "ayahCount": 7},
        {"number": 2, "nameEnglish": "Al-Baqarah", "nameArabic": "البقرة", "ayahCount": 286},
    ]})
    store = load_content_store(data_dir)
    assert store.total_sections() == 2
    assert [s["nameEnglish"] for s in store.list_sections()] == ["Al-Fatihah", "Al-Baqarah"]
    assert store.section_meta(1)["nameArabic"] == "الفاتحة"


def test_malformed_dataset_entries_are_skipped(tmp_path):
    data_dir = str(tmp_path)
    write_json(os.path.join(data_dir, "quran.json"), {"surahs": [
        {"number": 1, "ayahs": [{"arabic": "no number"}, {"number": 2, "arabic": "kept"}, "junk", {"number": "x"}]},
        {"ayahs": [{"number": 1, "arabic": "orphan"}]},
        "not a surah",
        {"number": 2, "ayahs": "not a list"},
    ]})
    store = load_content_store(data_dir)
    assert store.lookup_scripture(1, 2).text == "kept"
    assert store.lookup_scripture(1, 1).found is False
    assert store.lookup_scripture(2, 1).found is False
    assert store.total_sections() == 114


def test_dataset_with_wrong_shapes_loads_empty(tmp_path):
    data_dir = str(tmp_path)
    write_json(os.path.join(data_dir, "quran.json"), {"meta": "seed", "surahs": {"1": []}})
    store = load_content_store(data_dir)
    assert store.lookup_scripture(1, 1).found is False
    assert store.section_bound(1) == 7


def test_malformed_metadata_entries_are_skipped(tmp_path):
    data_dir = str(tmp_path)
    write_json(os.path.join(data_dir, "surah-metadata.json"), {"surahs": [
        {"nameEnglish": "No number", "ayahCount": 3},
        {"number": 1, "nameEnglish": "Al-Fatihah", "ayahCount": "seven"},
        {"number": 2, "nameEnglish": "Al-Baqarah", "ayahCount": 286},
        None,
    ]})
    store = load_content_store(data_dir)
    assert store.total_sections() == 2
    assert store.section_meta(1)["ayahCount"] == 0
    assert store.section_bound(2) == 286

    write_json(os.path.join(data_dir, "surah-metadata.json"), {"surahs": [{"nameEnglish": "none valid"}]})
    assert load_content_store(data_dir).total_sections() == 114


def test_section_bound_from_dataset_when_metadata_silent():
    store = ContentStore(
        sections=[{"number": 1, "nameEnglish": "One", "ayahCount": 0}],
        verses={1: {1: {"arabic": "x"}, 5: {"arabic": "y"}}},
    )
    assert store.section_bound(1) == 5
    assert store.section_bound(2) == 1


def test_supplications_loaded_and_validated(tmp_path):
    dua_dir = os.path.join(str(tmp_path), "duas")
    write_json(os.path.join(dua_dir, "kumayl.json"), {
        "id": "Kumayl", "title": "Duʿāʾ Kumayl",
        "lines": [{"arabic": " a ", "transliteration": "b", "english": "c"}],
    })
    write_json(os.path.join(dua_dir, "sabah.json"), {
        "title": "Duʿāʾ al-Sabah", "lines": [{"arabic": "s1"}, {"arabic": "s2"}],
    })
    write_json(os.path.join(dua_dir, "broken.json"), {"id": "broken", "title": "No lines", "lines": []})
    with open(os.path.join(dua_dir, "notes.txt"), "w", encoding="utf-8") as f:
        f.write("ignored")
    with open(os.path.join(dua_dir, "bad.json"), "w", encoding="utf-8") as f:
        f.write("{not json")

    store = load_content_store(str(tmp_path))
    handles = [d["handle"] for d in store.list_supplications()]
    assert handles == ["sabah", "kumayl"]
    assert store.default_supplication_handle() == "kumayl"
    assert store.lookup_supplication("kumayl", 1).text == "a"
    assert store.lookup_supplication("kumayl", 1).translation == "c"
    assert store.lookup_supplication("sabah", 2).translation == ""
    assert store.supplication_line_bound("sabah") == 2
    assert store.has_supplication("broken") is False


def test_supplication_lookup_out_of_range():
    store = make_store()
    assert store.lookup_supplication("kumayl", 3).found is False
    assert store.lookup_supplication("kumayl", 0).found is False
    assert store.lookup_supplication("nope", 1).found is False
    assert store.supplication_line_bound("nope") == 1
    assert store.supplication_title("nope") == ""


def test_display_config_merges_over_defaults(tmp_path):
    assert load_display_config(str(tmp_path))["brandText"] == "Al Zahraa Centre"
    write_json(os.path.join(str(tmp_path), "config.json"), {"brandText": "Masjid", "extra": 1})
    cfg = load_display_config(str(tmp_path))
    assert cfg["brandText"] == "Masjid"
    assert cfg["accentColor"] == "#5f7a69"
    assert cfg["extra"] == 1


if __name__ == "__main__":
    sys.exit(run_module_tests(dict(globals()), "CONTENT STORE TEST RESULTS"))
