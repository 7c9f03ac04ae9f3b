"""
=============================================================================
CONTENT-ENCODING NEGOTIATION
=============================================================================

Picks the content coding for one response.

=============================================================================
THE POLICY
=============================================================================

    Accept-Encoding: deflate, gzip
                │
                ▼
    parse_accept_encoding()  →  {"deflate", "gzip"}      client set
                │
                ▼
    negotiate(set, (br, gzip, deflate))
                │
                │   br?      not in set
                │   gzip?    in set  ──► GZIP
                ▼
             Encoding.GZIP

The SERVER's priority order decides, never the order the client listed
its codings in. The first priority entry the client accepts wins; if none
is accepted the answer is None and the unencoded source is served.

=============================================================================
LITERAL TOKEN MATCHING
=============================================================================

The header is split on a comma followed by optional whitespace and every
piece is kept exactly as sent. There is no quality-value handling and no
case folding:

    "gzip;q=0.5"     → {"gzip;q=0.5"}      does NOT match gzip
    "GZIP"           → {"GZIP"}            does NOT match gzip
    "gzip , br"      → {"gzip ", "br"}     br matches, "gzip " does not

Whitespace before a comma stays attached to the token before it.

=============================================================================
"""

import re
from typing import FrozenSet, Iterable, Optional, Tuple

from .variants import DEFAULT_PRIORITY, Encoding


_TOKEN_SEPARATOR = re.compile(r",\s*")


def parse_accept_encoding(header: Optional[str]) -> FrozenSet[str]:
    """
    Split an Accept-Encoding value into its set of raw tokens.

    A missing header gives the empty set. Empty pieces (from "" or a
    trailing comma) are dropped; they can never match a coding anyway.
    """
    if not header:
        return frozenset()
    return frozenset(token for token in _TOKEN_SEPARATOR.split(header) if token)


def negotiate(
    accepted: Iterable[str],
    priority: Tuple[Encoding, ...] = DEFAULT_PRIORITY,
) -> Optional[Encoding]:
    """
    Return the first encoding in `priority` whose token is in `accepted`.

    Args:
        accepted: Raw client tokens, e.g. from parse_accept_encoding().
        priority: Server preference order, highest first.

    Returns:
        The chosen Encoding, or None when nothing in `priority` is accepted.
    """
    accepted = frozenset(accepted)
    for encoding in priority:
        if encoding.token in accepted:
            return encoding
    return None


def select_encoding(
    header: Optional[str],
    priority: Tuple[Encoding, ...] = DEFAULT_PRIORITY,
) -> Optional[Encoding]:
    """parse_accept_encoding() followed by negotiate()."""
    return negotiate(parse_accept_encoding(header), priority)
