"""
=============================================================================
ARTIFACT GENERATOR
=============================================================================

Produces the pre-encoded copies of the source asset, once, before the
server starts accepting connections.

    ┌──────────────┐   read once    ┌─────────────────┐
    │  test.html   │ ─────────────► │  bytes in memory │
    └──────────────┘                └────────┬────────┘
                                             │
                 ┌───────────────────────────┼───────────────────────────┐
                 ▼                           ▼                           ▼
        brotli.compress()            gzip.compress()            zlib.compress()
                 │                           │                           │
                 ▼                           ▼                           ▼
          test.html.br                 test.html.gz                test.html.zz

The transforms are independent of each other. Each one overwrites its
variant file from the previous run.

=============================================================================
FAILURE MODEL
=============================================================================

    Source missing or unreadable   → SourceAssetError, startup aborts
    One transform fails            → logged at ERROR, that variant is
                                     removed from disk, the others are
                                     still written

Removing a failed variant matters: a stale file from an older source
would otherwise be served with a Content-Encoding that no longer matches
the current source. Without the file, requests negotiating that encoding
get a 404.

=============================================================================
DEFLATE MEANS ZLIB
=============================================================================

HTTP's "deflate" coding is the zlib format (RFC 1950: 2-byte header,
deflate data, Adler-32), not raw RFC 1951 deflate. zlib.compress()
produces exactly that.

=============================================================================
"""

import gzip
import logging
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Union

import brotli

from .variants import Encoding, variant_path


logger = logging.getLogger(__name__)


class SourceAssetError(Exception):
    """
    The source asset could not be read; nothing can be generated or served.

    Attributes:
        path: The path that was tried.
    """

    def __init__(self, path: Union[str, Path], reason: object):
        self.path = Path(path)
        super().__init__(f'Cannot read source file "{self.path}": {reason}')


# Per-encoding compression level when the caller gives none.
DEFAULT_LEVELS: Dict[Encoding, int] = {
    Encoding.BROTLI: 11,
    Encoding.GZIP: 6,
    Encoding.DEFLATE: 6,
}

# Valid level range per encoding, inclusive.
LEVEL_RANGES: Dict[Encoding, tuple] = {
    Encoding.BROTLI: (0, 11),
    Encoding.GZIP: (0, 9),
    Encoding.DEFLATE: (0, 9),
}


def _brotli(data: bytes, level: int) -> bytes:
    return brotli.compress(data, quality=level)


def _gzip(data: bytes, level: int) -> bytes:
    # mtime=0 keeps the output identical across runs for identical input.
    return gzip.compress(data, compresslevel=level, mtime=0)


def _deflate(data: bytes, level: int) -> bytes:
    return zlib.compress(data, level)


_COMPRESSORS: Dict[Encoding, Callable[[bytes, int], bytes]] = {
    Encoding.BROTLI: _brotli,
    Encoding.GZIP: _gzip,
    Encoding.DEFLATE: _deflate,
}


def compress(data: bytes, encoding: Encoding, level: Optional[int] = None) -> bytes:
    """
    Encode `data` with one content coding.

    Args:
        data: The raw bytes.
        encoding: Which coding to apply.
        level: Compression level/quality; DEFAULT_LEVELS when omitted.
    """
    if level is None:
        level = DEFAULT_LEVELS[encoding]
    return _COMPRESSORS[encoding](data, level)


@dataclass
class VariantResult:
    """Outcome of one transform: the written size, or the error."""
    encoding: Encoding
    path: Path
    size: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class GenerationReport:
    """What generate() produced, per encoding."""
    source_path: Path
    source_size: int
    results: Dict[Encoding, VariantResult] = field(default_factory=dict)

    @property
    def written(self) -> Dict[Encoding, VariantResult]:
        return {e: r for e, r in self.results.items() if r.ok}

    @property
    def failed(self) -> Dict[Encoding, VariantResult]:
        return {e: r for e, r in self.results.items() if not r.ok}

    def summary(self) -> str:
        """One line for the startup log."""
        parts = []
        for encoding, result in self.results.items():
            if result.ok:
                ratio = result.size / self.source_size if self.source_size else 0.0
                parts.append(f"{encoding.token}={result.size}B ({ratio:.0%})")
            else:
                parts.append(f"{encoding.token}=FAILED")
        return f"{self.source_path} ({self.source_size}B): " + ", ".join(parts)


def read_source(source_path: Union[str, Path]) -> bytes:
    """
    Read the whole source asset.

    Raises:
        SourceAssetError: The file is missing, a directory, or unreadable.
    """
    path = Path(source_path)
    try:
        return path.read_bytes()
    except OSError as e:
        raise SourceAssetError(path, e.strerror or e) from e


def generate(
    source_path: Union[str, Path],
    levels: Optional[Dict[Encoding, int]] = None,
    encodings: Iterable[Encoding] = tuple(Encoding),
) -> GenerationReport:
    """
    Write one pre-encoded variant of the source per encoding.

    The source is read exactly once; every transform works on that buffer.

    Args:
        source_path: The asset to encode.
        levels: Per-encoding compression levels, merged over DEFAULT_LEVELS.
        encodings: Which variants to produce.

    Returns:
        A GenerationReport with one VariantResult per encoding.

    Raises:
        SourceAssetError: The source could not be read.
    """
    source_path = Path(source_path)
    effective_levels = dict(DEFAULT_LEVELS)
    if levels:
        effective_levels.update(levels)

    data = read_source(source_path)
    report = GenerationReport(source_path=source_path, source_size=len(data))
    logger.info(f"Encoding {source_path} ({len(data)} bytes)")

    for encoding in encodings:
        path = variant_path(source_path, encoding)

        try:
            encoded = compress(data, encoding, effective_levels[encoding])
            path.write_bytes(encoded)
        except Exception as e:
            logger.error(f"Failed to generate {encoding.token} variant {path}: {e}")
            _remove_stale(path)
            report.results[encoding] = VariantResult(encoding, path, error=str(e))
            continue

        logger.debug(f"Wrote {path} ({len(encoded)} bytes)")
        report.results[encoding] = VariantResult(encoding, path, size=len(encoded))

    logger.info(f"Generated variants: {report.summary()}")
    return report


def _remove_stale(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove stale variant {path}: {e}")
