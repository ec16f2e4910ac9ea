"""Magic-number sniffing."""

import logging
import struct
from dataclasses import dataclass

from machwalk.errors import UnrecognizedFormat
from machwalk.loader.constants import (
    MH_MAGIC,
    MH_CIGAM,
    FAT_CIGAM,
    FAT_MAGIC,
    MH_CIGAM_64,
    MH_MAGIC_64,
    FAT_CIGAM_64,
    FAT_MAGIC_64,
    ByteOrder,
    ImageKind,
)
from machwalk.loader.source import ByteSource

logger = logging.getLogger(__name__)

_MAGICS: dict[int, tuple[ImageKind, ByteOrder]] = {
    MH_MAGIC_64: (ImageKind.THIN_MODERN, ByteOrder.NATIVE),
    MH_CIGAM_64: (ImageKind.THIN_MODERN, ByteOrder.SWAPPED),
    MH_MAGIC: (ImageKind.THIN_LEGACY, ByteOrder.NATIVE),
    MH_CIGAM: (ImageKind.THIN_LEGACY, ByteOrder.SWAPPED),
    FAT_MAGIC: (ImageKind.FAT, ByteOrder.NATIVE),
    FAT_CIGAM: (ImageKind.FAT, ByteOrder.SWAPPED),
    FAT_MAGIC_64: (ImageKind.FAT_64, ByteOrder.NATIVE),
    FAT_CIGAM_64: (ImageKind.FAT_64, ByteOrder.SWAPPED),
}


@dataclass(frozen=True)
class Sniff:
    """Classification of the magic at one offset."""

    offset: int
    magic: int
    kind: ImageKind
    byte_order: ByteOrder

    @property
    def is_fat(self) -> bool:
        return self.kind.is_fat

    @property
    def is_64bit(self) -> bool:
        return self.kind in (ImageKind.THIN_MODERN, ImageKind.FAT_64)

    def to_dict(self) -> dict[str, object]:
        return {
            "magic": f"{self.magic:#010x}",
            "kind": self.kind.value,
            "byte_order": self.byte_order.name.lower(),
            "endian": self.byte_order.endian,
            "is_fat": self.is_fat,
            "is_64bit": self.is_64bit,
        }


def read_magic(source: ByteSource, offset: int = 0) -> int:
    (magic,) = struct.unpack("<I", source.read(offset, 4))
    return magic


def sniff(source: ByteSource, offset: int = 0) -> Sniff:
    """Classify the magic at ``offset`` into image kind and byte order."""
    magic = read_magic(source, offset)
    try:
        kind, order = _MAGICS[magic]
    except KeyError:
        raise UnrecognizedFormat(f"Unknown magic {magic:#010x}", offset) from None

    result = Sniff(offset=offset, magic=magic, kind=kind, byte_order=order)
    logger.debug("Magic %#010x at %#x: %s, %s", magic, offset, kind.value, order.name)
    return result


def sniff_thin(source: ByteSource, offset: int) -> Sniff:
    """Like ``sniff`` but only accepts single-architecture images."""
    result = sniff(source, offset)
    if result.is_fat:
        raise UnrecognizedFormat(
            f"Nested fat magic {result.magic:#010x} inside fat archive", offset
        )
    return result
