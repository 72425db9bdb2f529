from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))

def normalize(name: str) -> str:
    """Lowercase, accent-free, single-spaced version of ``name``.

    Every character outside ``[a-z0-9]`` acts as a separator, so underscores,
    dashes and dots split tokens the same way spaces do.
    """

    lowered = strip_accents(unicodedata.normalize("NFKC", name or "")).lower()
    return " ".join(_NON_ALNUM.sub(" ", lowered).split())

def capitalize_name(full_name: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in full_name.split())
