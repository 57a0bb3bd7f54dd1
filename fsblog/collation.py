"""Human-ordered string sorting.

Raw codepoint order puts ``Zebra`` before ``apple`` and scatters accented
names; the key here folds case and accents first and only uses the raw
text to break ties, so ordering does not depend on the process locale.
"""

from __future__ import annotations

import unicodedata


def collation_key(text: str) -> tuple[str, str]:
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return folded, text
