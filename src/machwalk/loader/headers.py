"""Mach-O and fat header records."""

import logging
import struct
from dataclasses import dataclass

from machwalk.loader.source import ByteSource
from machwalk.loader.constants import (
    FAT_MAGIC_64,
    ByteOrder,
    ImageKind,
    cpu_type_name,
    file_type_name,
)

logger = logging.getLogger(__name__)

# struct mach_header / mach_header_64
MACH_HEADER_FORMAT = "IIIIIII"
MACH_HEADER_64_FORMAT = "IIIIIIII"
MACH_HEADER_SIZE = struct.calcsize("<" + MACH_HEADER_FORMAT)  # 28
MACH_HEADER_64_SIZE = struct.calcsize("<" + MACH_HEADER_64_FORMAT)  # 32

# struct fat_header, fat_arch, fat_arch_64
FAT_HEADER_FORMAT = "II"
FAT_ARCH_FORMAT = "IIIII"
FAT_ARCH_64_FORMAT = "IIQQII"
FAT_HEADER_SIZE = struct.calcsize(">" + FAT_HEADER_FORMAT)  # 8
FAT_ARCH_SIZE = struct.calcsize(">" + FAT_ARCH_FORMAT)  # 20
FAT_ARCH_64_SIZE = struct.calcsize(">" + FAT_ARCH_64_FORMAT)  # 32


@dataclass(frozen=True)
class MachHeader:
    """Mach-O header, 32 or 64-bit."""

    magic: int
    cputype: int
    cpusubtype: int
    filetype: int
    ncmds: int
    sizeofcmds: int
    flags: int
    reserved: int | None = None

    @classmethod
    def parse(cls, data: bytes, kind: ImageKind, order: ByteOrder) -> "MachHeader":
        """Decode header fields from bytes in the given byte order."""
        if kind is ImageKind.THIN_MODERN:
            fmt, size = MACH_HEADER_64_FORMAT, MACH_HEADER_64_SIZE
        elif kind is ImageKind.THIN_LEGACY:
            fmt, size = MACH_HEADER_FORMAT, MACH_HEADER_SIZE
        else:
            raise ValueError(f"Not a thin image kind: {kind}")

        if len(data) < size:
            raise ValueError("Data too small for Mach-O header")

        return cls(*struct.unpack(order.prefix + fmt, data[:size]))

    @classmethod
    def read(
        cls, source: ByteSource, offset: int, kind: ImageKind, order: ByteOrder
    ) -> "MachHeader":
        """Read and decode the header at ``offset``."""
        size = header_size(kind)
        header = cls.parse(source.read(offset, size), kind, order)
        logger.debug(
            "Header at %#x: cpu=%s filetype=%s ncmds=%d sizeofcmds=%d",
            offset,
            header.cpu_type_name,
            header.file_type_name,
            header.ncmds,
            header.sizeofcmds,
        )
        return header

    @property
    def is_64bit(self) -> bool:
        return self.reserved is not None

    @property
    def header_size(self) -> int:
        return MACH_HEADER_64_SIZE if self.is_64bit else MACH_HEADER_SIZE

    @property
    def cpu_type_name(self) -> str:
        return cpu_type_name(self.cputype)

    @property
    def file_type_name(self) -> str:
        return file_type_name(self.filetype)

    def to_dict(self) -> dict[str, object]:
        return {
            "magic": f"{self.magic:#010x}",
            "cputype": self.cputype,
            "cpu_type_name": self.cpu_type_name,
            "cpusubtype": self.cpusubtype,
            "filetype": self.filetype,
            "file_type_name": self.file_type_name,
            "ncmds": self.ncmds,
            "sizeofcmds": self.sizeofcmds,
            "flags": self.flags,
            "header_size": self.header_size,
        }


def header_size(kind: ImageKind) -> int:
    return MACH_HEADER_64_SIZE if kind is ImageKind.THIN_MODERN else MACH_HEADER_SIZE


@dataclass(frozen=True)
class FatHeader:
    """Fat (universal) header."""

    magic: int
    nfat_arch: int

    @classmethod
    def read(cls, source: ByteSource, order: ByteOrder) -> "FatHeader":
        data = source.read(0, FAT_HEADER_SIZE)
        return cls(*struct.unpack(order.prefix + FAT_HEADER_FORMAT, data))

    @property
    def is_64bit(self) -> bool:
        return self.magic == FAT_MAGIC_64

    @property
    def arch_size(self) -> int:
        return FAT_ARCH_64_SIZE if self.is_64bit else FAT_ARCH_SIZE

    def to_dict(self) -> dict[str, object]:
        return {"magic": f"{self.magic:#010x}", "nfat_arch": self.nfat_arch}


@dataclass(frozen=True)
class FatArch:
    """One entry of the fat architecture table."""

    cputype: int
    cpusubtype: int
    offset: int
    size: int
    align: int
    reserved: int | None = None

    @classmethod
    def read(
        cls, source: ByteSource, offset: int, order: ByteOrder, is_64bit: bool = False
    ) -> "FatArch":
        """Read one table entry at ``offset``."""
        if is_64bit:
            data = source.read(offset, FAT_ARCH_64_SIZE)
            return cls(*struct.unpack(order.prefix + FAT_ARCH_64_FORMAT, data))

        data = source.read(offset, FAT_ARCH_SIZE)
        return cls(*struct.unpack(order.prefix + FAT_ARCH_FORMAT, data))

    @property
    def end(self) -> int:
        return self.offset + self.size

    @property
    def cpu_type_name(self) -> str:
        return cpu_type_name(self.cputype)

    def to_dict(self) -> dict[str, object]:
        return {
            "cputype": self.cputype,
            "cpu_type_name": self.cpu_type_name,
            "cpusubtype": self.cpusubtype,
            "offset": self.offset,
            "size": self.size,
            "align": self.align,
        }
