"""Load command iteration."""

import logging
from dataclasses import dataclass, field

from machwalk.errors import MachOError, InputUnavailable, MalformedLoadCommand
from machwalk.loader.constants import ByteOrder
from machwalk.loader.source import ByteSource
from machwalk.loader.segments import (
    LOAD_COMMAND_SIZE,
    LoadCommand,
    SegmentCommand,
    segment_record_size,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOAD_COMMANDS = 10000


@dataclass
class WalkResult:
    """Commands decoded from one image, plus the error that stopped the walk."""

    commands: list[LoadCommand] = field(default_factory=list)
    error: MachOError | None = None

    @property
    def segments(self) -> list[SegmentCommand]:
        return [c for c in self.commands if isinstance(c, SegmentCommand)]

    @property
    def total_size(self) -> int:
        return sum(c.cmdsize for c in self.commands)

    @property
    def complete(self) -> bool:
        return self.error is None


def read_load_command(
    source: ByteSource, offset: int, order: ByteOrder, end: int
) -> LoadCommand:
    """Read and validate the load command at ``offset``.

    Raises MalformedLoadCommand if the declared size cannot be used to
    advance to the next command.
    """
    if offset + LOAD_COMMAND_SIZE > end:
        raise MalformedLoadCommand(
            f"Load command header runs past end of image ({end:#x})", offset
        )

    lc = LoadCommand.parse(source.read(offset, LOAD_COMMAND_SIZE), offset, order)

    if lc.cmdsize < LOAD_COMMAND_SIZE:
        raise MalformedLoadCommand(f"{lc.name} has cmdsize {lc.cmdsize}", offset)
    if lc.cmdsize % 4:
        raise MalformedLoadCommand(
            f"{lc.name} cmdsize {lc.cmdsize} is not 4-byte aligned", offset
        )
    if offset + lc.cmdsize > end:
        raise MalformedLoadCommand(
            f"{lc.name} cmdsize {lc.cmdsize} runs past end of image ({end:#x})", offset
        )

    if lc.is_segment:
        record_size = segment_record_size(lc.cmd)
        if lc.cmdsize < record_size:
            raise MalformedLoadCommand(
                f"{lc.name} cmdsize {lc.cmdsize} smaller than segment record ({record_size})",
                offset,
            )
        return SegmentCommand.parse(source.read(offset, record_size), offset, order)

    return lc


def walk_load_commands(
    source: ByteSource,
    start: int,
    order: ByteOrder,
    ncmds: int,
    end: int | None = None,
    max_commands: int = DEFAULT_MAX_LOAD_COMMANDS,
) -> WalkResult:
    """Decode ``ncmds`` load commands starting at ``start``.

    The cursor advances by each command's ``cmdsize``. The first malformed
    command stops the walk; commands decoded before it are kept.
    """
    if end is None:
        end = len(source)

    result = WalkResult()

    if ncmds > max_commands:
        result.error = MalformedLoadCommand(
            f"ncmds {ncmds} exceeds limit of {max_commands}", start
        )
        return result
    if ncmds * LOAD_COMMAND_SIZE > max(end - start, 0):
        result.error = MalformedLoadCommand(
            f"ncmds {ncmds} cannot fit in {max(end - start, 0)} bytes", start
        )
        return result

    cursor = start
    for index in range(ncmds):
        try:
            lc = read_load_command(source, cursor, order, end)
        except (MalformedLoadCommand, InputUnavailable) as e:
            logger.warning("Load command %d: %s", index, e)
            result.error = e
            break

        if isinstance(lc, SegmentCommand):
            logger.debug("%#x: %s %s", cursor, lc.name, lc.segment_name)
        else:
            logger.debug("%#x: %s (%d bytes)", cursor, lc.name, lc.cmdsize)

        result.commands.append(lc)
        cursor += lc.cmdsize

    return result
