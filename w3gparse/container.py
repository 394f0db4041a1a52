"""Reassemble the logical replay stream from its compressed blocks."""

from __future__ import annotations

import logging
import zlib
from dataclasses import dataclass
from typing import Callable, Optional

from .cursor import ByteCursor, parse_dword
from .diagnostics import Diagnostics, NullDiagnostics
from .errors import InflateError, TruncatedReplayError

logger = logging.getLogger(__name__)

LEADING_HEADER_LENGTH = 48
VERSION_OFFSET = 0x24
BLOCK_COUNT_OFFSET = 44
BLOCK_HEADER_LENGTH = 12

HEADER_LENGTHS = {0: 64, 1: 68}
"""Total header length by version byte; anything else is treated like version 1."""

Inflate = Callable[[bytes, int], bytes]


def zlib_inflate(compressed: bytes, hint_size: int) -> bytes:
    """Inflate one block, returning at most hint_size bytes.

    Blocks are sync-flushed rather than finished, so an unterminated final
    deflate block is fine; anything zlib rejects outright is an InflateError."""
    if hint_size <= 0:
        return b""
    decoder = zlib.decompressobj()
    try:
        return decoder.decompress(compressed, hint_size)
    except zlib.error as e:
        raise InflateError(str(e)) from e


@dataclass(frozen=True)
class Container:
    version: int
    header_length: int
    block_count: int
    data: bytes


def header_length_for(version: int) -> int:
    return HEADER_LENGTHS.get(version, HEADER_LENGTHS[1])


def read_container(
    data: bytes,
    inflate: Inflate = zlib_inflate,
    diagnostics: Optional[Diagnostics] = None,
) -> Container:
    """Parse the file header and inflate every data block into one buffer."""
    diagnostics = diagnostics or NullDiagnostics()
    cursor = ByteCursor(data)
    logger.debug(f"Total bytes length: {len(data)}")
    header = cursor.read(LEADING_HEADER_LENGTH)
    version = header[VERSION_OFFSET]
    header_length = header_length_for(version)
    cursor.skip(header_length - LEADING_HEADER_LENGTH)
    block_count = parse_dword(header[BLOCK_COUNT_OFFSET : BLOCK_COUNT_OFFSET + 4])
    logger.debug(f"Replay version {version}, header length {header_length}")
    logger.info(f"Total data blocks: {block_count}")

    out = bytearray()
    for k in range(block_count):
        offset = cursor.position
        try:
            compressed_length = cursor.read_dword()
            inflated_length = cursor.read_dword()
            checksum_a = cursor.read_word()
            checksum_b = cursor.read_word()
        except TruncatedReplayError:
            logger.warning(f"Block {k} header at {offset:#x} is truncated, stopping")
            diagnostics.block_stopped(k, "truncated block header")
            break
        logger.debug(
            f"Block {k} at {offset:#x}: {compressed_length} bytes -> {inflated_length} "
            f"(checksums {checksum_a:#06x} {checksum_b:#06x})"
        )
        try:
            compressed = cursor.read(compressed_length)
        except TruncatedReplayError:
            logger.warning(
                f"Failed to read data block {k} of length {compressed_length}, stopping"
            )
            diagnostics.block_stopped(k, "truncated block data")
            break
        try:
            inflated = inflate(compressed, inflated_length)
        except InflateError as e:
            logger.warning(f"Failed to inflate block {k}: {e}")
            diagnostics.block_stopped(k, f"inflate failed: {e}")
            break
        out += inflated

    logger.info(f"Finished block decoding. Total decoded data length: {len(out)}")
    return Container(
        version=version,
        header_length=header_length,
        block_count=block_count,
        data=bytes(out),
    )
