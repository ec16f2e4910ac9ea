"""Binary loader module for walking Mach-O files."""

from machwalk.loader.macho import FatArchEntry, MachOFile, MachOImage, ParseLimits
from machwalk.loader.source import ByteSource, FileSource, BytesSource
from machwalk.loader.headers import FatArch, FatHeader, MachHeader
from machwalk.loader.sniffer import Sniff, sniff
from machwalk.loader.commands import WalkResult, walk_load_commands
from machwalk.loader.segments import LoadCommand, SegmentCommand
from machwalk.loader.constants import ByteOrder, ImageKind, LoadCommandType

__all__ = [
    "MachOFile",
    "MachOImage",
    "FatArchEntry",
    "ParseLimits",
    "ByteSource",
    "FileSource",
    "BytesSource",
    "MachHeader",
    "FatHeader",
    "FatArch",
    "Sniff",
    "sniff",
    "WalkResult",
    "walk_load_commands",
    "LoadCommand",
    "SegmentCommand",
    "LoadCommandType",
    "ByteOrder",
    "ImageKind",
]
