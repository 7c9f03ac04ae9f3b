"""
Unit tests for variant generation.
"""

import gzip
import logging
import zlib
from pathlib import Path

import brotli
import pytest

from encodingserver.encoding import (
    Encoding,
    SourceAssetError,
    compress,
    generate,
    variant_path,
)
from encodingserver.encoding import generator


class TestGenerate:
    """Tests for generate()."""

    def test_writes_all_variants(self, source_file: Path):
        report = generate(source_file)
        data = source_file.read_bytes()

        assert report.source_size == len(data)
        assert set(report.written) == set(Encoding)
        assert report.failed == {}

        br = variant_path(source_file, Encoding.BROTLI).read_bytes()
        gz = variant_path(source_file, Encoding.GZIP).read_bytes()
        zz = variant_path(source_file, Encoding.DEFLATE).read_bytes()

        assert brotli.decompress(br) == data
        assert gzip.decompress(gz) == data
        assert zlib.decompress(zz) == data

    def test_reported_sizes_match_disk(self, source_file: Path):
        report = generate(source_file)

        for encoding, result in report.results.items():
            assert result.size == result.path.stat().st_size
            assert result.size < report.source_size

    def test_overwrites_previous_variants(self, source_file: Path):
        stale = variant_path(source_file, Encoding.GZIP)
        stale.write_bytes(b"not gzip at all")

        generate(source_file)

        assert gzip.decompress(stale.read_bytes()) == source_file.read_bytes()

    def test_gzip_output_is_reproducible(self, source_file: Path):
        generate(source_file)
        first = variant_path(source_file, Encoding.GZIP).read_bytes()
        generate(source_file)

        assert variant_path(source_file, Encoding.GZIP).read_bytes() == first

    def test_source_is_not_modified(self, source_file: Path):
        before = source_file.read_bytes()
        generate(source_file)

        assert source_file.read_bytes() == before

    def test_empty_source(self, tmp_path: Path):
        source = tmp_path / "empty.html"
        source.write_bytes(b"")

        report = generate(source)

        assert report.failed == {}
        assert gzip.decompress(variant_path(source, Encoding.GZIP).read_bytes()) == b""

    def test_missing_source_raises(self, tmp_path: Path):
        missing = tmp_path / "nope.html"

        with pytest.raises(SourceAssetError) as exc_info:
            generate(missing)

        assert exc_info.value.path == missing
        assert "nope.html" in str(exc_info.value)
        assert not variant_path(missing, Encoding.GZIP).exists()

    def test_directory_source_raises(self, tmp_path: Path):
        with pytest.raises(SourceAssetError):
            generate(tmp_path)

    def test_failed_transform_removes_stale_variant(self, source_file, monkeypatch, caplog):
        stale = variant_path(source_file, Encoding.BROTLI)
        stale.write_bytes(b"old brotli")

        def boom(data, level):
            raise RuntimeError("encoder crashed")

        monkeypatch.setitem(generator._COMPRESSORS, Encoding.BROTLI, boom)

        with caplog.at_level(logging.ERROR, logger="encodingserver.encoding.generator"):
            report = generate(source_file)

        assert not stale.exists()
        assert set(report.failed) == {Encoding.BROTLI}
        assert report.failed[Encoding.BROTLI].error == "encoder crashed"
        assert variant_path(source_file, Encoding.GZIP).exists()
        assert variant_path(source_file, Encoding.DEFLATE).exists()
        assert "encoder crashed" in caplog.text
        assert "br=FAILED" in report.summary()

    def test_levels_are_passed_through(self, source_file, monkeypatch):
        seen = {}

        def recording(encoding):
            original = generator._COMPRESSORS[encoding]

            def compress_fn(data, level):
                seen[encoding] = level
                return original(data, level)

            return compress_fn

        for encoding in Encoding:
            monkeypatch.setitem(generator._COMPRESSORS, encoding, recording(encoding))

        generate(source_file, levels={Encoding.GZIP: 1})

        assert seen == {Encoding.BROTLI: 11, Encoding.GZIP: 1, Encoding.DEFLATE: 6}

    def test_subset_of_encodings(self, source_file: Path):
        report = generate(source_file, encodings=[Encoding.GZIP])

        assert set(report.results) == {Encoding.GZIP}
        assert not variant_path(source_file, Encoding.BROTLI).exists()


class TestCompress:
    """Tests for compress()."""

    def test_deflate_is_zlib_wrapped(self):
        encoded = compress(b"hello hello hello", Encoding.DEFLATE)

        # zlib header: CMF 0x78
        assert encoded[0] == 0x78
        assert zlib.decompress(encoded) == b"hello hello hello"

    def test_gzip_magic(self):
        assert compress(b"x", Encoding.GZIP)[:2] == b"\x1f\x8b"
