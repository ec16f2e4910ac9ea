"""Error taxonomy for Mach-O inspection."""


class MachOError(Exception):
    """Base class for every failure raised while walking a Mach-O file."""

    kind = "error"

    def __init__(self, message: str, offset: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset

    def __str__(self) -> str:
        return f"{self.message} (at offset {self.offset:#x})"

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind, "offset": self.offset, "message": self.message}


class InputUnavailable(MachOError):
    """The byte source cannot supply the requested bytes."""

    kind = "input_unavailable"


class TruncatedInput(InputUnavailable):
    """Fewer bytes are available than a fixed-size record needs."""

    kind = "truncated_input"


class UnrecognizedFormat(MachOError):
    """Magic value matches none of the known thin or fat constants."""

    kind = "unrecognized_format"


class MalformedFatEntry(MachOError):
    """Fat architecture entry (or the table itself) exceeds the file bounds."""

    kind = "malformed_fat_entry"


class MalformedLoadCommand(MachOError):
    """Load command with a zero, undersized, misaligned or overrunning size."""

    kind = "malformed_load_command"
