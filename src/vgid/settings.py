"""Configuration for the encode/decode pipeline."""

from __future__ import annotations

from dataclasses import dataclass


# zlib accepts levels 0 (store) through 9 (best compression)
_MIN_COMPRESSION_LEVEL = 0
_MAX_COMPRESSION_LEVEL = 9


@dataclass(frozen=True)
class CodecSettings:
    """Settings shared by an Encoder and the Decoder that reads its output.

    Both sides of a deployment must agree on `compress`, since the wire
    format carries no marker saying whether the payload was compressed.
    """

    compress: bool = True
    """Run the packed envelope through zlib before base64url encoding."""

    compression_level: int = 9
    """zlib compression level used when `compress` is enabled."""

    max_payload_size: int = 64 * 1024
    """
    Upper bound, in bytes, on the decoded envelope.

    Decompression stops and the ID is rejected once this many bytes have been
    produced, so a small crafted ID cannot expand into a huge buffer.
    """

    def __post_init__(self) -> None:
        if not _MIN_COMPRESSION_LEVEL <= self.compression_level <= _MAX_COMPRESSION_LEVEL:
            raise ValueError(
                f"compression_level must be between {_MIN_COMPRESSION_LEVEL} and "
                f"{_MAX_COMPRESSION_LEVEL}, got {self.compression_level}"
            )
        if self.max_payload_size <= 0:
            raise ValueError(f"max_payload_size must be positive, got {self.max_payload_size}")


DEFAULT_SETTINGS = CodecSettings()


__all__ = ["DEFAULT_SETTINGS", "CodecSettings"]
