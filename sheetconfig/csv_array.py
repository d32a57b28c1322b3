'''Cell-level splitter for string-array columns.

  fire, ice            -> ["fire", "ice"]
  "a,b",c              -> ["a,b", "c"]
  "say ""hi""",bye     -> ['say "hi"', "bye"]
'''

from __future__ import annotations

from typing import List, Optional


def parse_csv_style_array(text: Optional[str]) -> List[str]:
    if not text:
        return []

    result: List[str] = []
    in_quotes = False
    current: List[str] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c == '"':
            if i + 1 < n and text[i + 1] == '"':
                # Doubled quote is a literal quote.
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif c == "," and not in_quotes:
            result.append("".join(current).strip())
            current = []
        else:
            current.append(c)
        i += 1

    if current:
        result.append("".join(current).strip())
    return result
