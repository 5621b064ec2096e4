#!/usr/bin/env python3
"""Text normalization shared by header matching and node path keys."""

import hashlib
import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_NON_ALNUM_RUNS = re.compile(r"[^a-z0-9]+")


def strip_accents(text: str) -> str:
    """Remove diacritics by NFD-decomposing and dropping combining marks."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_header(text: str) -> str:
    """Normalize a header or synonym for comparison.

    "Intitulé" -> "intitule", "CODE OFFICIEL" -> "codeofficiel".
    """
    return _NON_ALNUM.sub("", strip_accents((text or "").lower()))


def slugify(text: str) -> str:
    """Slug used in node path keys: "Sécurité & Réseau" -> "securite-reseau"."""
    lowered = strip_accents((text or "").lower())
    return _NON_ALNUM_RUNS.sub("-", lowered).strip("-")


def label_segment(label: str) -> str:
    """Path key segment for a label.

    Labels made only of punctuation slugify to "" and would all collide, so
    they get a short digest of the case-folded label instead.
    """
    slug = slugify(label)
    if slug:
        return slug
    digest = hashlib.sha1(label.casefold().encode("utf-8")).hexdigest()[:10]
    return f"x{digest}"


def same_label(left: str, right: str) -> bool:
    """Case-insensitive label equality used by the collapse rule."""
    return left.casefold() == right.casefold()
