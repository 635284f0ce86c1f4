# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon Compressor - File compression for backup artifacts.

Supports the three codecs allowed by the backup policy:
1. gzip  (.gz)
2. bzip2 (.bz2)
3. xz    (.xz)

Files are streamed in chunks so dumps larger than memory are fine.
"""

import bz2
import gzip
import lzma
import shutil
import zlib
from pathlib import Path
from typing import IO, Callable, Dict

import structlog

from hegemon.config import CompressionConfig
from hegemon.exceptions import CompressionError

logger = structlog.get_logger()

CHUNK_SIZE = 1024 * 1024

FILE_EXTENSIONS: Dict[str, str] = {
    "gzip": ".gz",
    "bzip2": ".bz2",
    "xz": ".xz",
}

# Level names -> codec level (gzip/bzip2 compresslevel, xz preset)
LEVELS: Dict[str, int] = {
    "low": 1,
    "medium": 6,
    "high": 9,
}

# Exceptions a codec may raise on corrupt input
_CODEC_ERRORS = (OSError, EOFError, lzma.LZMAError, zlib.error, ValueError)


def _gzip_writer(path: Path, level: int) -> IO[bytes]:
    return gzip.open(path, "wb", compresslevel=level)


def _bzip2_writer(path: Path, level: int) -> IO[bytes]:
    return bz2.open(path, "wb", compresslevel=level)


def _xz_writer(path: Path, level: int) -> IO[bytes]:
    return lzma.open(path, "wb", preset=level)


_WRITERS: Dict[str, Callable[[Path, int], IO[bytes]]] = {
    "gzip": _gzip_writer,
    "bzip2": _bzip2_writer,
    "xz": _xz_writer,
}

_READERS: Dict[str, Callable[[Path], IO[bytes]]] = {
    "gzip": lambda path: gzip.open(path, "rb"),
    "bzip2": lambda path: bz2.open(path, "rb"),
    "xz": lambda path: lzma.open(path, "rb"),
}


class Compressor:
    """
    Compress and decompress whole files with the configured codec.

    ``compress_file`` and ``decompress_file`` report failure by returning
    False; they never leave a partial destination file behind.
    """

    def __init__(self, config: CompressionConfig):
        if config.format not in FILE_EXTENSIONS:
            raise CompressionError(
                f"Unsupported compression format: {config.format}",
                details={"format": config.format},
            )
        if config.level not in LEVELS:
            raise CompressionError(
                f"Unsupported compression level: {config.level}",
                details={"level": config.level},
            )
        self.format = config.format
        self.level = LEVELS[config.level]

    def get_file_extension(self) -> str:
        """Extension appended to compressed files, including the dot."""
        return FILE_EXTENSIONS[self.format]

    def compress_file(self, src: str | Path, dst: str | Path) -> bool:
        """
        Compress src into a new file at dst.

        Args:
            src: Uncompressed input file
            dst: Compressed output file (overwritten if present)

        Returns:
            True on success
        """
        src_path, dst_path = Path(src), Path(dst)
        try:
            with src_path.open("rb") as fin, _WRITERS[self.format](dst_path, self.level) as fout:
                shutil.copyfileobj(fin, fout, CHUNK_SIZE)
        except _CODEC_ERRORS as e:
            logger.error(
                "compression_failed",
                src=str(src_path),
                dst=str(dst_path),
                format=self.format,
                error=str(e),
            )
            _discard(dst_path)
            return False

        logger.debug(
            "compression_complete",
            src=str(src_path),
            dst=str(dst_path),
            **get_compression_stats(src_path.stat().st_size, dst_path.stat().st_size),
        )
        return True

    def decompress_file(self, src: str | Path, dst: str | Path) -> bool:
        """
        Decompress src into a new file at dst.

        Args:
            src: Compressed input file
            dst: Uncompressed output file (overwritten if present)

        Returns:
            True on success
        """
        src_path, dst_path = Path(src), Path(dst)
        try:
            with _READERS[self.format](src_path) as fin, dst_path.open("wb") as fout:
                shutil.copyfileobj(fin, fout, CHUNK_SIZE)
        except _CODEC_ERRORS as e:
            logger.error(
                "decompression_failed",
                src=str(src_path),
                dst=str(dst_path),
                format=self.format,
                error=str(e),
            )
            _discard(dst_path)
            return False

        logger.debug("decompression_complete", src=str(src_path), dst=str(dst_path))
        return True

    def test_file(self, path: str | Path) -> bool:
        """Read a compressed file end to end without writing anything."""
        try:
            with _READERS[self.format](Path(path)) as fin:
                while fin.read(CHUNK_SIZE):
                    pass
        except _CODEC_ERRORS:
            return False
        return True


def compressor_for_extension(suffix: str, level: str = "medium") -> Compressor | None:
    """
    Pick a compressor from a file suffix such as ``.gz``.

    Returns:
        A Compressor, or None if the suffix belongs to no known codec
    """
    for fmt, extension in FILE_EXTENSIONS.items():
        if extension == suffix:
            return Compressor(CompressionConfig(enabled=True, format=fmt, level=level))
    return None


def get_compression_stats(
    original_size: int,
    compressed_size: int,
) -> dict:
    """
    Calculate compression statistics.

    Args:
        original_size: Original data size in bytes
        compressed_size: Compressed data size in bytes

    Returns:
        Dict with compression statistics
    """
    if compressed_size == 0:
        return {
            "original_size": original_size,
            "compressed_size": compressed_size,
            "compression_ratio": 0,
        }

    return {
        "original_size": original_size,
        "compressed_size": compressed_size,
        "compression_ratio": round(original_size / compressed_size, 2),
    }


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("partial_file_cleanup_failed", path=str(path), error=str(e))
