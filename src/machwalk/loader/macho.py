"""Mach-O file walker: thin images and fat (universal) archives."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from machwalk.errors import (
    MachOError,
    InputUnavailable,
    MalformedFatEntry,
    UnrecognizedFormat,
    MalformedLoadCommand,
)
from machwalk.loader.commands import DEFAULT_MAX_LOAD_COMMANDS, walk_load_commands
from machwalk.loader.headers import (
    FAT_HEADER_SIZE,
    FatArch,
    FatHeader,
    MachHeader,
    header_size,
)
from machwalk.loader.segments import LoadCommand, SegmentCommand
from machwalk.loader.sniffer import Sniff, sniff, sniff_thin
from machwalk.loader.source import ByteSource, BytesSource, FileSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_FAT_ARCHS = 64
MAGIC_SIZE = 4


@dataclass(frozen=True)
class ParseLimits:
    """Upper bounds applied to counts read from the file."""

    max_load_commands: int = DEFAULT_MAX_LOAD_COMMANDS
    max_fat_archs: int = DEFAULT_MAX_FAT_ARCHS


@dataclass
class MachOImage:
    """One single-architecture image and its load commands."""

    offset: int
    size: int
    sniff: Sniff
    header: MachHeader
    commands: list[LoadCommand] = field(default_factory=list)
    error: MachOError | None = None

    @property
    def cpu_type_name(self) -> str:
        return self.header.cpu_type_name

    @property
    def ncmds(self) -> int:
        return self.header.ncmds

    @property
    def load_commands_offset(self) -> int:
        return self.offset + self.header.header_size

    @property
    def segments(self) -> list[SegmentCommand]:
        return [c for c in self.commands if isinstance(c, SegmentCommand)]

    def to_dict(self) -> dict[str, object]:
        return {
            "offset": self.offset,
            "size": self.size,
            **self.sniff.to_dict(),
            "header": self.header.to_dict(),
            "commands": [c.to_dict() for c in self.commands],
            "error": self.error.to_dict() if self.error else None,
        }

    @classmethod
    def parse(
        cls,
        source: ByteSource,
        offset: int = 0,
        size: int | None = None,
        limits: ParseLimits | None = None,
    ) -> "MachOImage":
        """Decode the thin image at ``offset`` spanning ``size`` bytes.

        When ``size`` is given (a fat member), the magic and header must fit
        inside it. Sniff and header failures are raised; load command
        failures are attached to the returned image.
        """
        limits = limits or ParseLimits()
        bounded = size is not None
        if size is None:
            size = len(source) - offset

        if bounded and size < MAGIC_SIZE:
            raise MalformedFatEntry(f"Slice of {size} bytes cannot hold a magic", offset)

        image_sniff = sniff_thin(source, offset)
        if bounded and size < header_size(image_sniff.kind):
            raise MalformedFatEntry(
                f"Slice of {size} bytes cannot hold a {image_sniff.kind.value} header", offset
            )

        header = MachHeader.read(source, offset, image_sniff.kind, image_sniff.byte_order)
        image = cls(offset=offset, size=size, sniff=image_sniff, header=header)

        walk = walk_load_commands(
            source,
            image.load_commands_offset,
            image_sniff.byte_order,
            header.ncmds,
            end=offset + size,
            max_commands=limits.max_load_commands,
        )
        image.commands = walk.commands
        image.error = walk.error

        if walk.complete and walk.total_size != header.sizeofcmds:
            image.error = MalformedLoadCommand(
                f"Load commands span {walk.total_size} bytes, header declares {header.sizeofcmds}",
                offset,
            )
            logger.warning("Image at %#x: %s", offset, image.error)

        return image


@dataclass
class FatArchEntry:
    """One fat architecture table entry and the image it points to."""

    index: int
    arch: FatArch
    image: MachOImage | None = None
    error: MachOError | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "index": self.index,
            **self.arch.to_dict(),
            "image": self.image.to_dict() if self.image else None,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class MachOFile:
    """Structural report for one Mach-O file."""

    path: Path
    file_size: int = 0
    sniff: Sniff | None = None
    fat_header: FatHeader | None = None
    archs: list[FatArchEntry] = field(default_factory=list)
    images: list[MachOImage] = field(default_factory=list)
    error: MachOError | None = None

    @classmethod
    def load(cls, path: str | Path, limits: ParseLimits | None = None) -> "MachOFile":
        """Open a file by path and walk it."""
        path = Path(path)
        try:
            with FileSource(path) as source:
                return cls.parse(source, path, limits)
        except InputUnavailable as e:
            logger.warning("%s: %s", path, e)
            return cls(path=path, error=e)

    @classmethod
    def from_bytes(
        cls, data: bytes, path: Path | None = None, limits: ParseLimits | None = None
    ) -> "MachOFile":
        return cls.parse(BytesSource(data), path, limits)

    @classmethod
    def parse(
        cls,
        source: ByteSource,
        path: Path | None = None,
        limits: ParseLimits | None = None,
    ) -> "MachOFile":
        """Walk every image reachable from the magic at offset 0."""
        limits = limits or ParseLimits()
        macho = cls(path=path or Path("<memory>"), file_size=len(source))

        try:
            macho.sniff = sniff(source, 0)
            if macho.sniff.is_fat:
                macho._parse_fat(source, macho.sniff, limits)
            else:
                macho.images.append(MachOImage.parse(source, 0, limits=limits))
        except (InputUnavailable, UnrecognizedFormat, MalformedFatEntry) as e:
            logger.warning("%s: %s", macho.path, e)
            macho.error = e

        return macho

    def _parse_fat(self, source: ByteSource, fat_sniff: Sniff, limits: ParseLimits) -> None:
        """Walk the fat architecture table in declared order."""
        self.fat_header = FatHeader.read(source, fat_sniff.byte_order)
        nfat_arch = self.fat_header.nfat_arch
        arch_size = self.fat_header.arch_size
        logger.debug("Fat header: %d architectures", nfat_arch)

        if nfat_arch > limits.max_fat_archs:
            raise MalformedFatEntry(
                f"nfat_arch {nfat_arch} exceeds limit of {limits.max_fat_archs}", 0
            )
        table_end = FAT_HEADER_SIZE + nfat_arch * arch_size
        if table_end > len(source):
            raise MalformedFatEntry(
                f"Architecture table of {nfat_arch} entries runs past end of file", 0
            )

        for index in range(nfat_arch):
            entry_offset = FAT_HEADER_SIZE + index * arch_size
            arch = FatArch.read(
                source, entry_offset, fat_sniff.byte_order, self.fat_header.is_64bit
            )
            entry = FatArchEntry(index=index, arch=arch)
            self.archs.append(entry)

            if arch.end > len(source):
                entry.error = MalformedFatEntry(
                    f"Architecture {index} ({arch.cpu_type_name}) spans "
                    f"{arch.offset:#x}-{arch.end:#x} beyond file size {len(source):#x}",
                    entry_offset,
                )
                logger.warning("%s", entry.error)
                continue

            try:
                entry.image = MachOImage.parse(source, arch.offset, arch.size, limits)
            except (InputUnavailable, UnrecognizedFormat, MalformedFatEntry) as e:
                logger.warning("Architecture %d: %s", index, e)
                entry.error = e
                continue

            self.images.append(entry.image)

    @property
    def is_fat(self) -> bool:
        return self.sniff is not None and self.sniff.is_fat

    def errors(self) -> Iterator[MachOError]:
        """Yield every error attached anywhere in the report."""
        if self.error:
            yield self.error
        for entry in self.archs:
            if entry.error:
                yield entry.error
        for image in self.images:
            if image.error:
                yield image.error

    @property
    def ok(self) -> bool:
        return next(self.errors(), None) is None

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "file_size": self.file_size,
            **(self.sniff.to_dict() if self.sniff else {}),
            "fat_header": self.fat_header.to_dict() if self.fat_header else None,
            "archs": [a.to_dict() for a in self.archs],
            "images": [i.to_dict() for i in self.images] if not self.is_fat else [],
            "errors": [e.to_dict() for e in self.errors()],
        }
