"""Builders for synthetic Mach-O images used by the tests."""

import struct

from machwalk.loader.constants import (
    MH_MAGIC,
    FAT_MAGIC,
    MH_EXECUTE,
    MH_MAGIC_64,
    FAT_MAGIC_64,
    CPU_TYPE_ARM64,
    LoadCommandType,
)

LC_UUID = LoadCommandType.LC_UUID
LC_SEGMENT = LoadCommandType.LC_SEGMENT
LC_SEGMENT_64 = LoadCommandType.LC_SEGMENT_64


def load_command(cmd: int, cmdsize: int = 24, order: str = "<") -> bytes:
    """Generic load command padded with zeros to ``cmdsize``."""
    body = struct.pack(order + "II", cmd, cmdsize)
    return body + b"\x00" * max(cmdsize - len(body), 0)


def segment_command(
    name: bytes,
    order: str = "<",
    is_64: bool = True,
    vmaddr: int | None = None,
    vmsize: int = 0x4000,
    fileoff: int = 0,
    filesize: int = 0x4000,
    maxprot: int = 5,
    initprot: int = 5,
    cmdsize: int | None = None,
) -> bytes:
    """LC_SEGMENT(_64) record, optionally padded beyond its natural size."""
    if is_64:
        fmt, cmd = "II16sQQQQIIII", LC_SEGMENT_64
    else:
        fmt, cmd = "II16sIIIIIIII", LC_SEGMENT
    if vmaddr is None:
        vmaddr = 0x100000000 if is_64 else 0x1000
    natural = struct.calcsize(order + fmt)
    cmdsize = natural if cmdsize is None else cmdsize
    body = struct.pack(
        order + fmt,
        cmd,
        cmdsize,
        name,
        vmaddr,
        vmsize,
        fileoff,
        filesize,
        maxprot,
        initprot,
        0,
        0,
    )
    return body + b"\x00" * max(cmdsize - natural, 0)


def macho_image(
    commands: list[bytes],
    order: str = "<",
    is_64: bool = True,
    cputype: int = CPU_TYPE_ARM64,
    filetype: int = MH_EXECUTE,
    ncmds: int | None = None,
    sizeofcmds: int | None = None,
) -> bytes:
    """Header followed by the given command records."""
    blob = b"".join(commands)
    ncmds = len(commands) if ncmds is None else ncmds
    sizeofcmds = len(blob) if sizeofcmds is None else sizeofcmds
    if is_64:
        header = struct.pack(
            order + "IIIIIIII", MH_MAGIC_64, cputype, 0, filetype, ncmds, sizeofcmds, 0, 0
        )
    else:
        header = struct.pack(
            order + "IIIIIII", MH_MAGIC, cputype, 0, filetype, ncmds, sizeofcmds, 0
        )
    return header + blob


def fat_binary(
    slices: list[tuple[int, bytes]],
    order: str = ">",
    is_64: bool = False,
    align: int = 4,
    size_overrides: dict[int, int] | None = None,
) -> bytes:
    """Fat container holding ``(cputype, image)`` slices in table order."""
    size_overrides = size_overrides or {}
    arch_size = 32 if is_64 else 20
    cursor = 8 + arch_size * len(slices)
    step = 1 << align

    table = b""
    payload = b""
    for index, (cputype, image) in enumerate(slices):
        padded = (cursor + step - 1) // step * step
        payload += b"\x00" * (padded - cursor)
        size = size_overrides.get(index, len(image))
        if is_64:
            table += struct.pack(order + "IIQQII", cputype, 0, padded, size, align, 0)
        else:
            table += struct.pack(order + "IIIII", cputype, 0, padded, size, align)
        payload += image
        cursor = padded + len(image)

    magic = FAT_MAGIC_64 if is_64 else FAT_MAGIC
    return struct.pack(order + "II", magic, len(slices)) + table + payload


def text_and_uuid_image(order: str = "<", is_64: bool = True, cputype: int = CPU_TYPE_ARM64) -> bytes:
    """Image with one ``__TEXT`` segment followed by an LC_UUID."""
    return macho_image(
        [
            segment_command(b"__TEXT", order=order, is_64=is_64),
            load_command(LC_UUID, 24, order=order),
        ],
        order=order,
        is_64=is_64,
        cputype=cputype,
    )
