"""machwalk - Structural inspector for Mach-O and universal binaries."""

from pathlib import Path

from machwalk.errors import (
    MachOError,
    TruncatedInput,
    InputUnavailable,
    MalformedFatEntry,
    UnrecognizedFormat,
    MalformedLoadCommand,
)
from machwalk.loader import (
    Sniff,
    FatArch,
    ByteOrder,
    ImageKind,
    MachOFile,
    MachHeader,
    MachOImage,
    LoadCommand,
    ParseLimits,
    FatArchEntry,
    SegmentCommand,
)

__version__ = "0.1.0"
__all__ = [
    "inspect_file",
    "inspect_bytes",
    "MachOFile",
    "MachOImage",
    "FatArchEntry",
    "FatArch",
    "MachHeader",
    "LoadCommand",
    "SegmentCommand",
    "Sniff",
    "ByteOrder",
    "ImageKind",
    "ParseLimits",
    "MachOError",
    "InputUnavailable",
    "TruncatedInput",
    "UnrecognizedFormat",
    "MalformedFatEntry",
    "MalformedLoadCommand",
]


def inspect_file(path: str | Path, limits: ParseLimits | None = None) -> MachOFile:
    """Walk the Mach-O file at ``path`` and return its structural report."""
    return MachOFile.load(path, limits)


def inspect_bytes(data: bytes, limits: ParseLimits | None = None) -> MachOFile:
    """Walk an in-memory Mach-O blob."""
    return MachOFile.from_bytes(data, limits=limits)


def main() -> None:
    """Entry point for CLI."""
    from machwalk.cli import main as cli_main

    cli_main()
