"""
Position state: clamping, stepping and content payload derivation.

Every function here is pure. A new PositionState is always produced already
clamped to the store's bounds, so callers never hold an out-of-range value.
"""

import math
import sys
from dataclasses import replace
from typing import Any, Dict

from .rd_content import ContentStore
from .rd_models import (
    Direction, Domain, PositionState, ScripturePosition, SupplicationPosition,
)

MISSING_TEXT = "—"


def coerce_index(value: Any, default: int = 1) -> int:
    """
    Turn any inbound value into an integer index.

    Non-numeric, NaN and zero inputs fall back to default; the caller
    clamps whatever comes out.
    """
    if isinstance(value, bool):
        value = int(value)
    # Ints stay exact; float() overflows on very long JSON integers
    if isinstance(value, int):
        return value or default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    if math.isinf(number):
        return sys.maxsize if number > 0 else 1
    number = int(number)
    return number or default


def clamp(value: int, upper: int) -> int:
    return max(1, min(upper, value))


# ---------------- Clamping ----------------

def clamp_domain(mode: Any) -> Domain:
    return Domain.SUPPLICATION if mode == Domain.SUPPLICATION.value else Domain.SCRIPTURE


def clamp_scripture(store: ContentStore, section_index: Any, sub_index: Any) -> ScripturePosition:
    section = clamp(coerce_index(section_index), store.total_sections())
    sub = clamp(coerce_index(sub_index), store.section_bound(section))
    return ScripturePosition(section_index=section, sub_index=sub)


def clamp_supplication(store: ContentStore, handle: Any, line_index: Any) -> SupplicationPosition:
    """Unknown handles fall back to the default supplication."""
    requested = str(handle or "").strip().lower()
    if not store.has_supplication(requested):
        requested = store.default_supplication_handle()
    if not requested:
        return SupplicationPosition(handle="", line_index=1)
    line = clamp(coerce_index(line_index), store.supplication_line_bound(requested))
    return SupplicationPosition(handle=requested, line_index=line)


def clamp_state(store: ContentStore, state: PositionState) -> PositionState:
    scripture = clamp_scripture(store, state.scripture.section_index, state.scripture.sub_index)
    supplication = clamp_supplication(store, state.supplication.handle, state.supplication.line_index)
    domain = state.domain
    if domain is Domain.SUPPLICATION and not supplication.handle:
        domain = Domain.SCRIPTURE
    return PositionState(domain=domain, scripture=scripture, supplication=supplication)


def initial_state(store: ContentStore) -> PositionState:
    return clamp_state(store, PositionState(
        domain=Domain.SCRIPTURE,
        scripture=ScripturePosition(1, 1),
        supplication=SupplicationPosition(store.default_supplication_handle(), 1),
    ))


# ---------------- Mutations ----------------

def with_domain(store: ContentStore, state: PositionState, mode: Any) -> PositionState:
    return clamp_state(store, replace(state, domain=clamp_domain(mode)))


def with_scripture(store: ContentStore, state: PositionState, section_index: Any, sub_index: Any) -> PositionState:
    return clamp_state(store, replace(state, scripture=clamp_scripture(store, section_index, sub_index)))


def with_supplication(store: ContentStore, state: PositionState, handle: Any, line_index: Any) -> PositionState:
    return clamp_state(store, replace(state, supplication=clamp_supplication(store, handle, line_index)))


def step_scripture(store: ContentStore, position: ScripturePosition, direction: Direction) -> ScripturePosition:
    """Move one verse, crossing section edges but never wrapping around the ends."""
    step = -1 if direction is Direction.PREVIOUS else 1
    total = store.total_sections()

    section = position.section_index
    sub = position.sub_index + step

    bound = store.section_bound(section)
    if sub > bound:
        if section < total:
            section += 1
            sub = 1
        else:
            sub = bound

    if sub < 1:
        if section > 1:
            section -= 1
            sub = store.section_bound(section)
        else:
            sub = 1

    return clamp_scripture(store, section, sub)


def step_supplication(store: ContentStore, position: SupplicationPosition, direction: Direction) -> SupplicationPosition:
    """Move one line inside the current supplication; clamps at both ends."""
    step = -1 if direction is Direction.PREVIOUS else 1
    current = clamp_supplication(store, position.handle, position.line_index)
    total_lines = store.supplication_line_bound(current.handle)
    return SupplicationPosition(
        handle=current.handle,
        line_index=clamp(current.line_index + step, total_lines),
    )


def apply_step(store: ContentStore, state: PositionState, direction: Direction) -> PositionState:
    if state.domain is Domain.SUPPLICATION:
        return clamp_state(store, replace(state, supplication=step_supplication(store, state.supplication, direction)))
    return clamp_state(store, replace(state, scripture=step_scripture(store, state.scripture, direction)))


# ---------------- Derivation ----------------

def scripture_payload(store: ContentStore, position: ScripturePosition) -> Dict[str, Any]:
    meta = store.section_meta(position.section_index)
    found = store.lookup_scripture(position.section_index, position.sub_index)

    payload: Dict[str, Any] = {
        "mode": Domain.SCRIPTURE.value,
        "header": f"{meta['nameEnglish']} ({position.section_index}) · Ayah {position.sub_index}",
        "scripture": {
            "sectionIndex": position.section_index,
            "subIndex": position.sub_index,
            "sectionNameEnglish": meta["nameEnglish"],
            "sectionNameArabic": meta["nameArabic"],
            "subCount": meta["ayahCount"],
        },
    }
    if found.found:
        payload.update(arabic=found.text, transliteration=found.transliteration,
                       translation=found.translation, missing=False)
    else:
        payload.update(
            arabic=MISSING_TEXT,
            translation=f"No bundled text for Surah {position.section_index}, Ayah {position.sub_index}.",
            transliteration="Add a full dataset file at data/quran.full.json (or set RECITATION_DISPLAY_QURAN_FILE).",
            missing=True,
        )
    return payload


def supplication_payload(store: ContentStore, position: SupplicationPosition) -> Dict[str, Any]:
    if not store.has_supplication(position.handle):
        return {
            "mode": Domain.SUPPLICATION.value,
            "header": "Duʿāʾ · Line 1",
            "arabic": MISSING_TEXT,
            "translation": "No dua is currently loaded.",
            "transliteration": "Add a file in data/duas and restart server.",
            "supplication": {"handle": "", "title": "Duʿāʾ", "lineIndex": 1, "lineCount": 1},
            "missing": True,
        }

    title = store.supplication_title(position.handle)
    line_count = store.supplication_line_bound(position.handle)
    line_index = clamp(position.line_index, line_count)
    found = store.lookup_supplication(position.handle, line_index)

    return {
        "mode": Domain.SUPPLICATION.value,
        "header": f"{title} · Line {line_index}",
        "arabic": found.text or MISSING_TEXT,
        "translation": found.translation,
        "transliteration": found.transliteration,
        "supplication": {
            "handle": position.handle,
            "title": title,
            "lineIndex": line_index,
            "lineCount": line_count,
        },
        "missing": not found.found,
    }


def derive_content_payload(store: ContentStore, state: PositionState) -> Dict[str, Any]:
    """Fresh payload for whatever the active domain points at."""
    if state.domain is Domain.SUPPLICATION:
        return supplication_payload(store, state.supplication)
    return scripture_payload(store, state.scripture)


def state_summary(state: PositionState) -> str:
    if state.domain is Domain.SUPPLICATION:
        return f"dua:{state.supplication.handle}#{state.supplication.line_index}"
    return f"quran:{state.scripture.section_index}:{state.scripture.sub_index}"
