"""Parse the plain-text section layout image-prompt models answer with."""

from __future__ import annotations

import re
from typing import Optional

SECTION_HEADERS: tuple[str, ...] = (
    "Summary",
    "Mood Memory",
    "Positive Prompt",
    "Negative Prompt",
    "Settings",
)

_HEADER_LOOKUP = {header.lower(): header for header in SECTION_HEADERS}
_HEADER_RE = re.compile(r"^[*\s]*([^:*]+?)[*\s]*:\s*(.*)$")
_SETTING_RE = re.compile(r"^(?:[-•]\s*)?([^:]+):\s*(.+)$")


def _detect_header(line: str) -> Optional[tuple[str, str]]:
    trimmed = line.strip()
    if not trimmed:
        return None
    match = _HEADER_RE.match(trimmed)
    if not match:
        return None
    candidate = re.sub(r"\s+", " ", match.group(1)).strip().lower()
    header = _HEADER_LOOKUP.get(candidate)
    if header is None:
        return None
    # "**Summary:** text" leaves the closing bold marker on the inline part.
    return header, (match.group(2) or "").strip().strip("*").strip()


def extract_section(text: str, header: str) -> Optional[str]:
    """Return the body under ``header`` up to the next known heading.

    Lines shaped like ``Model: ...`` that are not one of the known headings stay
    inside the current section.
    """
    collected: list[str] = []
    collecting = False

    for line in text.splitlines():
        detected = _detect_header(line)
        if detected:
            found, inline = detected
            if found == header:
                collecting = True
                collected = []
                if inline.strip():
                    collected.append(inline.strip())
            elif collecting:
                break
            continue
        if collecting:
            collected.append(line.rstrip("\r"))

    result = "\n".join(collected).strip()
    return result or None


def parse_settings(section: Optional[str]) -> dict[str, str]:
    if not section:
        return {}

    settings: dict[str, str] = {}
    pending_key: Optional[str] = None
    for raw_line in section.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        match = _SETTING_RE.match(line)
        if match:
            key = match.group(1).strip()
            settings[key] = match.group(2).strip()
            pending_key = key
            continue
        if pending_key:
            # Continuation of a wrapped value.
            settings[pending_key] = f"{settings[pending_key]} {line}".strip()
    return settings


def parse_structured_text(content: str) -> Optional[dict[str, object]]:
    """Collect every known section, or ``None`` when the text carries none of them."""
    summary = extract_section(content, "Summary")
    mood_memory = extract_section(content, "Mood Memory")
    positive = extract_section(content, "Positive Prompt")
    negative = extract_section(content, "Negative Prompt")
    settings_text = extract_section(content, "Settings")

    if not any((summary, mood_memory, positive, negative, settings_text)):
        return None

    parsed: dict[str, object] = {
        "summary": summary or "",
        "positivePrompt": positive or "",
        "negativePrompt": negative or "",
        "settings": parse_settings(settings_text),
    }
    if mood_memory:
        parsed["moodMemory"] = mood_memory
    return parsed


__all__ = ["SECTION_HEADERS", "extract_section", "parse_settings", "parse_structured_text"]
