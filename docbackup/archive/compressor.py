# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup Compressor - zstd compression for archived and exported payloads.

Backup payloads are JSON text with a lot of repeated keys; zstd typically
shrinks them 5-15x.
"""

import asyncio
import json
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import structlog
import zstandard as zstd

from docbackup.exceptions import BackupError

logger = structlog.get_logger()

# Thread pool for CPU-bound compression of large payloads
_executor = ThreadPoolExecutor(max_workers=2)

DEFAULT_ZSTD_LEVEL = 19

# Payloads above this size are compressed off the event loop
_THREAD_THRESHOLD = 1024 * 1024


def encode_payload(payload: Any) -> bytes:
    """
    UTF-8 JSON text of a payload. Its length is the payload's size in bytes.
    """
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def decode_payload(data: bytes) -> Any:
    return json.loads(data.decode("utf-8"))


async def compress_payload(raw_bytes: bytes, zstd_level: int = DEFAULT_ZSTD_LEVEL) -> bytes:
    """
    Compress encoded payload bytes with zstd.

    Args:
        raw_bytes: Encoded payload
        zstd_level: zstd compression level (1-22, default 19)

    Returns:
        Compressed bytes
    """
    try:
        compressed = await _run(_compress_zstd_sync, raw_bytes, zstd_level)
    except Exception as e:
        raise BackupError(
            f"Compression failed: {e}",
            details={"original_size": len(raw_bytes)},
        )

    logger.debug(
        "compression_complete",
        original_size=len(raw_bytes),
        compressed_size=len(compressed),
        compression_ratio=f"{len(raw_bytes) / len(compressed):.2f}x" if compressed else "0x",
    )
    return compressed


async def decompress_payload(compressed_bytes: bytes) -> bytes:
    """
    Decompress zstd-compressed payload bytes.
    """
    try:
        return await _run(_decompress_zstd_sync, compressed_bytes)
    except Exception as e:
        raise BackupError(f"Decompression failed: {e}")


async def _run(func, *args):
    if len(args[0]) > _THREAD_THRESHOLD:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, func, *args)
    return func(*args)


def _compress_zstd_sync(data: bytes, level: int) -> bytes:
    cctx = zstd.ZstdCompressor(level=level)
    return cctx.compress(data)


def _decompress_zstd_sync(data: bytes) -> bytes:
    dctx = zstd.ZstdDecompressor()
    return dctx.decompress(data)


def is_zstd_frame(data: bytes) -> bool:
    """True when the bytes start with the zstd frame magic number."""
    return data[:4] == b"\x28\xb5\x2f\xfd"
