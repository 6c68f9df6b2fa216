import re

import unicodedata



_WS = re.compile(r"\s+")

_PUNCT = re.compile(r"[^\w\s]", re.UNICODE)



def normalize_key(s: str | None) -> str | None:

    """

    Lookup key for free-text place names: lowercased, accents removed,

    punctuation stripped, whitespace collapsed. None if nothing is left.

    """

    if s is None:

        return None

    s = str(s).strip()

    if not s:

        return None

    s = unicodedata.normalize("NFKD", s)

    s = "".join(ch for ch in s if not unicodedata.combining(ch))

    s = s.lower()

    s = _PUNCT.sub(" ", s)

    s = _WS.sub(" ", s).strip()

    return s or None



def clean_text(s):

    if s is None: return None

    s = str(s).strip()

    s = s.replace("\r\n", "\n").replace("\r", "\n")

    s = re.sub(r"[ \t]+", " ", s)

    return s or None
