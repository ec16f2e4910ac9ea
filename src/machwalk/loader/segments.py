"""Load command and segment command records."""

import struct
from dataclasses import dataclass

from machwalk.loader.constants import LoadCommandType, ByteOrder, load_command_name

# struct load_command
LOAD_COMMAND_FORMAT = "II"
LOAD_COMMAND_SIZE = struct.calcsize("<" + LOAD_COMMAND_FORMAT)  # 8

# struct segment_command / segment_command_64
SEGMENT_COMMAND_FORMAT = "II16sIIIIIIII"
SEGMENT_COMMAND_64_FORMAT = "II16sQQQQIIII"
SEGMENT_COMMAND_SIZE = struct.calcsize("<" + SEGMENT_COMMAND_FORMAT)  # 56
SEGMENT_COMMAND_64_SIZE = struct.calcsize("<" + SEGMENT_COMMAND_64_FORMAT)  # 72

SEGNAME_WIDTH = 16


@dataclass(frozen=True)
class LoadCommand:
    """Common ``{cmd, cmdsize}`` prefix of every load command."""

    offset: int
    cmd: int
    cmdsize: int

    @classmethod
    def parse(cls, data: bytes, offset: int, order: ByteOrder) -> "LoadCommand":
        cmd, cmdsize = struct.unpack(order.prefix + LOAD_COMMAND_FORMAT, data[:LOAD_COMMAND_SIZE])
        return cls(offset=offset, cmd=cmd, cmdsize=cmdsize)

    @property
    def name(self) -> str:
        return load_command_name(self.cmd)

    @property
    def is_segment(self) -> bool:
        return self.cmd in (LoadCommandType.LC_SEGMENT, LoadCommandType.LC_SEGMENT_64)

    def to_dict(self) -> dict[str, object]:
        return {
            "offset": self.offset,
            "cmd": self.cmd,
            "name": self.name,
            "cmdsize": self.cmdsize,
        }


@dataclass(frozen=True)
class SegmentCommand(LoadCommand):
    """LC_SEGMENT or LC_SEGMENT_64 command."""

    segname: bytes = b""
    vmaddr: int = 0
    vmsize: int = 0
    fileoff: int = 0
    filesize: int = 0
    maxprot: int = 0
    initprot: int = 0
    nsects: int = 0
    flags: int = 0

    @classmethod
    def parse(cls, data: bytes, offset: int, order: ByteOrder) -> "SegmentCommand":
        """Decode a 32 or 64-bit segment record from its full bytes."""
        (cmd,) = struct.unpack(order.prefix + "I", data[:4])
        if cmd == LoadCommandType.LC_SEGMENT_64:
            fmt, size = SEGMENT_COMMAND_64_FORMAT, SEGMENT_COMMAND_64_SIZE
        else:
            fmt, size = SEGMENT_COMMAND_FORMAT, SEGMENT_COMMAND_SIZE

        (
            cmd,
            cmdsize,
            segname,
            vmaddr,
            vmsize,
            fileoff,
            filesize,
            maxprot,
            initprot,
            nsects,
            flags,
        ) = struct.unpack(order.prefix + fmt, data[:size])

        return cls(
            offset=offset,
            cmd=cmd,
            cmdsize=cmdsize,
            segname=segname.split(b"\x00", 1)[0],
            vmaddr=vmaddr,
            vmsize=vmsize,
            fileoff=fileoff,
            filesize=filesize,
            maxprot=maxprot,
            initprot=initprot,
            nsects=nsects,
            flags=flags,
        )

    @property
    def segment_name(self) -> str:
        return self.segname.decode("utf-8", errors="replace")

    @property
    def is_64bit(self) -> bool:
        return self.cmd == LoadCommandType.LC_SEGMENT_64

    def to_dict(self) -> dict[str, object]:
        result = super().to_dict()
        result.update(
            {
                "segname": self.segment_name,
                "vmaddr": self.vmaddr,
                "vmsize": self.vmsize,
                "fileoff": self.fileoff,
                "filesize": self.filesize,
                "maxprot": self.maxprot,
                "initprot": self.initprot,
                "nsects": self.nsects,
                "flags": self.flags,
            }
        )
        return result


def segment_record_size(cmd: int) -> int:
    if cmd == LoadCommandType.LC_SEGMENT_64:
        return SEGMENT_COMMAND_64_SIZE
    return SEGMENT_COMMAND_SIZE
