"""
=============================================================================
ENCODED VARIANTS
=============================================================================

The three content codings this server knows, and where each pre-encoded
copy of the source asset lives on disk.

    source:   test.html
              ├── test.html.br    brotli
              ├── test.html.gz    gzip
              └── test.html.zz    deflate (zlib-wrapped, RFC 1950)

The variant path is a pure function of (source path, encoding). No
encoding at all maps back to the source itself.

=============================================================================
"""

from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple, Union


class Encoding(str, Enum):
    """
    A content coding, valued by its Accept-Encoding / Content-Encoding token.

    A str subclass, so members compare equal to their tokens:

        >>> Encoding.GZIP == "gzip"
        True
    """

    BROTLI = "br"
    GZIP = "gzip"
    DEFLATE = "deflate"

    @property
    def token(self) -> str:
        """Token as it appears in HTTP headers."""
        return self.value

    @property
    def suffix(self) -> str:
        """File suffix appended to the source path for this variant."""
        return _SUFFIXES[self]

    @classmethod
    def from_token(cls, token: str) -> "Encoding":
        """
        Look an encoding up by its exact token.

        Raises:
            ValueError: If the token names no known encoding.
        """
        try:
            return cls(token)
        except ValueError:
            known = ", ".join(e.value for e in cls)
            raise ValueError(f"Unknown encoding {token!r}; expected one of {known}")


_SUFFIXES: Dict[Encoding, str] = {
    Encoding.BROTLI: ".br",
    Encoding.GZIP: ".gz",
    Encoding.DEFLATE: ".zz",
}


# Highest preference first.
DEFAULT_PRIORITY: Tuple[Encoding, ...] = (
    Encoding.BROTLI,
    Encoding.GZIP,
    Encoding.DEFLATE,
)


def variant_path(source: Union[str, Path], encoding: Optional[Encoding]) -> Path:
    """
    Path of the file served for `encoding`.

        variant_path("test.html", Encoding.GZIP)  → test.html.gz
        variant_path("test.html", None)           → test.html
    """
    source = Path(source)
    if encoding is None:
        return source
    return source.with_name(source.name + encoding.suffix)


def variant_table(source: Union[str, Path]) -> Dict[Optional[Encoding], Path]:
    """Every servable path for `source`, keyed by encoding (None = identity)."""
    table: Dict[Optional[Encoding], Path] = {None: Path(source)}
    for encoding in Encoding:
        table[encoding] = variant_path(source, encoding)
    return table
