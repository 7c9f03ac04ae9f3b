"""
=============================================================================
CONTENT ENCODING
=============================================================================

    variants.py      Encoding enum, priority order, variant file paths
    negotiation.py   Accept-Encoding parsing and the selection policy
    generator.py     One-shot creation of the .br / .gz / .zz files

=============================================================================
"""

from .variants import Encoding, DEFAULT_PRIORITY, variant_path, variant_table
from .negotiation import parse_accept_encoding, negotiate, select_encoding
from .generator import (
    SourceAssetError,
    GenerationReport,
    VariantResult,
    DEFAULT_LEVELS,
    LEVEL_RANGES,
    compress,
    generate,
    read_source,
)

__all__ = [
    "Encoding",
    "DEFAULT_PRIORITY",
    "variant_path",
    "variant_table",
    "parse_accept_encoding",
    "negotiate",
    "select_encoding",
    "SourceAssetError",
    "GenerationReport",
    "VariantResult",
    "DEFAULT_LEVELS",
    "LEVEL_RANGES",
    "compress",
    "generate",
    "read_source",
]
