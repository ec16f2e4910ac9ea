"""Mach-O constants and small enums shared by the loader."""

from enum import Enum, IntEnum


# Mach-O magic numbers, as read little-endian from the first four bytes
MH_MAGIC = 0xFEEDFACE
MH_CIGAM = 0xCEFAEDFE  # Byte-swapped
MH_MAGIC_64 = 0xFEEDFACF
MH_CIGAM_64 = 0xCFFAEDFE  # Byte-swapped

# Fat (Universal) binary magic numbers
FAT_MAGIC = 0xCAFEBABE
FAT_CIGAM = 0xBEBAFECA
FAT_MAGIC_64 = 0xCAFEBABF
FAT_CIGAM_64 = 0xBFBAFECA

# CPU types
CPU_ARCH_ABI64 = 0x01000000
CPU_TYPE_I386 = 0x00000007
CPU_TYPE_X86_64 = CPU_TYPE_I386 | CPU_ARCH_ABI64
CPU_TYPE_ARM = 0x0000000C
CPU_TYPE_ARM64 = CPU_TYPE_ARM | CPU_ARCH_ABI64

CPU_TYPE_NAMES: dict[int, str] = {
    CPU_TYPE_I386: "i386",
    CPU_TYPE_X86_64: "x86_64",
    CPU_TYPE_ARM: "arm",
    CPU_TYPE_ARM64: "arm64",
}

# File types
MH_OBJECT = 0x1
MH_EXECUTE = 0x2
MH_FVMLIB = 0x3
MH_CORE = 0x4
MH_PRELOAD = 0x5
MH_DYLIB = 0x6
MH_DYLINKER = 0x7
MH_BUNDLE = 0x8
MH_DYLIB_STUB = 0x9
MH_DSYM = 0xA
MH_KEXT_BUNDLE = 0xB
MH_FILESET = 0xC

FILE_TYPE_NAMES: dict[int, str] = {
    MH_OBJECT: "MH_OBJECT",
    MH_EXECUTE: "MH_EXECUTE",
    MH_FVMLIB: "MH_FVMLIB",
    MH_CORE: "MH_CORE",
    MH_PRELOAD: "MH_PRELOAD",
    MH_DYLIB: "MH_DYLIB",
    MH_DYLINKER: "MH_DYLINKER",
    MH_BUNDLE: "MH_BUNDLE",
    MH_DYLIB_STUB: "MH_DYLIB_STUB",
    MH_DSYM: "MH_DSYM",
    MH_KEXT_BUNDLE: "MH_KEXT_BUNDLE",
    MH_FILESET: "MH_FILESET",
}


def cpu_type_name(cputype: int) -> str:
    """Resolve a CPU type to a short name, "unknown" if not in the table."""
    return CPU_TYPE_NAMES.get(cputype, "unknown")


def file_type_name(filetype: int) -> str:
    return FILE_TYPE_NAMES.get(filetype, f"MH_{filetype:#x}")


class ByteOrder(Enum):
    """Byte order of an image relative to the order its magic was read in.

    Magic values are read little-endian, so NATIVE images store their fields
    little-endian and SWAPPED images store them big-endian.
    """

    NATIVE = "<"
    SWAPPED = ">"

    @property
    def prefix(self) -> str:
        """struct format prefix for this order."""
        return self.value

    @property
    def endian(self) -> str:
        return "little" if self is ByteOrder.NATIVE else "big"


class ImageKind(Enum):
    """What the leading magic says a blob is."""

    THIN_LEGACY = "thin-32"
    THIN_MODERN = "thin-64"
    FAT = "fat"
    FAT_64 = "fat-64"

    @property
    def is_fat(self) -> bool:
        return self in (ImageKind.FAT, ImageKind.FAT_64)


class LoadCommandType(IntEnum):
    """Mach-O load command types."""

    LC_SEGMENT = 0x01
    LC_SYMTAB = 0x02
    LC_SYMSEG = 0x03
    LC_THREAD = 0x04
    LC_UNIXTHREAD = 0x05
    LC_DYSYMTAB = 0x0B
    LC_LOAD_DYLIB = 0x0C
    LC_ID_DYLIB = 0x0D
    LC_LOAD_DYLINKER = 0x0E
    LC_ID_DYLINKER = 0x0F
    LC_PREBOUND_DYLIB = 0x10
    LC_ROUTINES = 0x11
    LC_SUB_FRAMEWORK = 0x12
    LC_SUB_CLIENT = 0x14
    LC_TWOLEVEL_HINTS = 0x16
    LC_LOAD_WEAK_DYLIB = 0x80000018
    LC_SEGMENT_64 = 0x19
    LC_ROUTINES_64 = 0x1A
    LC_UUID = 0x1B
    LC_RPATH = 0x8000001C
    LC_CODE_SIGNATURE = 0x1D
    LC_SEGMENT_SPLIT_INFO = 0x1E
    LC_REEXPORT_DYLIB = 0x8000001F
    LC_LAZY_LOAD_DYLIB = 0x20
    LC_ENCRYPTION_INFO = 0x21
    LC_DYLD_INFO = 0x22
    LC_DYLD_INFO_ONLY = 0x80000022
    LC_LOAD_UPWARD_DYLIB = 0x80000023
    LC_VERSION_MIN_MACOSX = 0x24
    LC_VERSION_MIN_IPHONEOS = 0x25
    LC_FUNCTION_STARTS = 0x26
    LC_DYLD_ENVIRONMENT = 0x27
    LC_MAIN = 0x80000028
    LC_DATA_IN_CODE = 0x29
    LC_SOURCE_VERSION = 0x2A
    LC_DYLIB_CODE_SIGN_DRS = 0x2B
    LC_ENCRYPTION_INFO_64 = 0x2C
    LC_LINKER_OPTION = 0x2D
    LC_LINKER_OPTIMIZATION_HINT = 0x2E
    LC_VERSION_MIN_TVOS = 0x2F
    LC_VERSION_MIN_WATCHOS = 0x30
    LC_NOTE = 0x31
    LC_BUILD_VERSION = 0x32
    LC_DYLD_EXPORTS_TRIE = 0x80000033
    LC_DYLD_CHAINED_FIXUPS = 0x80000034
    LC_FILESET_ENTRY = 0x80000035


def load_command_name(cmd: int) -> str:
    """Label for a load command tag, ``LC_0x...`` for unknown tags."""
    try:
        return LoadCommandType(cmd).name
    except ValueError:
        return f"LC_{cmd:#x}"
