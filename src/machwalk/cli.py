"""Command-line interface for machwalk."""

import json
import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from machwalk import __version__
from machwalk.errors import (
    MachOError,
    InputUnavailable,
    MalformedFatEntry,
    UnrecognizedFormat,
    MalformedLoadCommand,
)
from machwalk.loader.commands import DEFAULT_MAX_LOAD_COMMANDS
from machwalk.loader.macho import DEFAULT_MAX_FAT_ARCHS, MachOFile, MachOImage, ParseLimits
from machwalk.loader.segments import SegmentCommand

console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_UNSUPPORTED_FORMAT = 2
EXIT_CORRUPT_INPUT = 3

# Most severe first
_EXIT_CODES: list[tuple[type[MachOError], int]] = [
    (InputUnavailable, EXIT_INPUT_ERROR),
    (UnrecognizedFormat, EXIT_UNSUPPORTED_FORMAT),
    (MalformedFatEntry, EXIT_CORRUPT_INPUT),
    (MalformedLoadCommand, EXIT_CORRUPT_INPUT),
]


def exit_code(macho: MachOFile) -> int:
    """Map the errors attached to a report onto a process exit code."""
    errors = list(macho.errors())
    for error_type, code in _EXIT_CODES:
        if any(isinstance(e, error_type) for e in errors):
            return code
    return EXIT_CORRUPT_INPUT if errors else EXIT_OK


def setup_logging(verbose: bool) -> None:
    """Route package log records to stderr through rich."""
    handler = RichHandler(console=err_console, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("machwalk")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "--max-load-commands",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_LOAD_COMMANDS,
    show_default=True,
    envvar="MACHWALK_MAX_LOAD_COMMANDS",
    help="Reject images declaring more load commands than this.",
)
@click.option(
    "--max-fat-archs",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_FAT_ARCHS,
    show_default=True,
    envvar="MACHWALK_MAX_FAT_ARCHS",
    help="Reject fat files declaring more architectures than this.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, max_load_commands: int, max_fat_archs: int) -> None:
    """machwalk - Mach-O structure inspector."""
    setup_logging(verbose)
    ctx.obj = ParseLimits(
        max_load_commands=max_load_commands,
        max_fat_archs=max_fat_archs,
    )


@main.command()
@click.argument("binary", type=click.Path(dir_okay=False))
@click.pass_obj
def info(limits: ParseLimits, binary: str) -> None:
    """Display file layout and load commands."""
    macho = MachOFile.load(binary, limits)

    console.print(Panel.fit(f"[bold]{macho.path.name}[/bold]", title="Mach-O Info"))

    table = Table(show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Path", str(macho.path))
    table.add_row("Size", f"{macho.file_size:#x}")
    if macho.sniff:
        table.add_row("Magic", f"{macho.sniff.magic:#010x}")
        table.add_row("Kind", macho.sniff.kind.value)
        table.add_row("Byte Order", macho.sniff.byte_order.endian)
        table.add_row("Fat", "yes" if macho.is_fat else "no")
    if macho.fat_header:
        table.add_row("Architectures", str(macho.fat_header.nfat_arch))

    console.print(table)

    if macho.fat_header:
        arch_table = Table(title="Architectures")
        arch_table.add_column("#")
        arch_table.add_column("CPU", style="cyan")
        arch_table.add_column("Offset", style="green")
        arch_table.add_column("Size")
        arch_table.add_column("Align")
        arch_table.add_column("Status")

        for entry in macho.archs:
            status = f"[red]{entry.error.kind}[/red]" if entry.error else "ok"
            arch_table.add_row(
                str(entry.index),
                entry.arch.cpu_type_name,
                f"{entry.arch.offset:#x}",
                f"{entry.arch.size:#x}",
                f"2^{entry.arch.align}",
                status,
            )

        console.print(arch_table)

    for image in macho.images:
        _print_image(image)

    _print_errors(macho)
    raise SystemExit(exit_code(macho))


def _print_image(image: MachOImage) -> None:
    console.print(
        f"\n[bold]{image.cpu_type_name}[/bold] @ {image.offset:#x}  "
        f"{image.sniff.kind.value}, {image.sniff.byte_order.endian}-endian, "
        f"{image.header.file_type_name}"
    )

    cmd_table = Table()
    cmd_table.add_column("Offset", style="green")
    cmd_table.add_column("Command", style="cyan")
    cmd_table.add_column("Size")
    cmd_table.add_column("Segment")
    cmd_table.add_column("VM Address")
    cmd_table.add_column("VM Size")

    for lc in image.commands:
        if isinstance(lc, SegmentCommand):
            cmd_table.add_row(
                f"{lc.offset:#x}",
                lc.name,
                str(lc.cmdsize),
                lc.segment_name,
                f"{lc.vmaddr:#x}",
                f"{lc.vmsize:#x}",
            )
        else:
            cmd_table.add_row(f"{lc.offset:#x}", lc.name, str(lc.cmdsize), "", "", "")

    console.print(cmd_table)
    console.print(f"Load commands: {len(image.commands)}/{image.ncmds}")


def _print_errors(macho: MachOFile) -> None:
    for error in macho.errors():
        err_console.print(f"[red]{error.kind}[/red]: {error}")


@main.command()
@click.argument("binary", type=click.Path(dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Emit the report as JSON.")
@click.pass_obj
def dump(limits: ParseLimits, binary: str, as_json: bool) -> None:
    """Dump the file layout as plain text or JSON."""
    macho = MachOFile.load(binary, limits)

    if as_json:
        click.echo(json.dumps(macho.to_dict(), indent=2))
        raise SystemExit(exit_code(macho))

    click.echo(f"File: {macho.path}")
    if macho.sniff:
        click.echo(f"Magic: {macho.sniff.magic:#010x}")
        click.echo(f"Is 64-bit: {macho.sniff.is_64bit}")
        click.echo(f"Byte Order: {macho.sniff.byte_order.endian}")
        click.echo(f"Is Fat: {macho.is_fat}")

    if macho.is_fat:
        for entry in macho.archs:
            click.echo(
                f"Architecture {entry.index}: {entry.arch.cpu_type_name} "
                f"offset={entry.arch.offset:#x} size={entry.arch.size:#x}"
            )
            if entry.image:
                _dump_image(entry.image)
            if entry.error:
                click.echo(f"  error: {entry.error.kind}: {entry.error}")
    else:
        for image in macho.images:
            _dump_image(image)

    _print_errors(macho)
    raise SystemExit(exit_code(macho))


def _dump_image(image: MachOImage) -> None:
    click.echo(f"CPU Type Name: {image.cpu_type_name}")
    click.echo(f"Number of Load Commands: {image.ncmds}")
    for lc in image.commands:
        click.echo(f"Load Command: {lc.name}")
        if isinstance(lc, SegmentCommand):
            click.echo(f"Segment Name: {lc.segment_name}")
    if image.error:
        click.echo(f"  error: {image.error.kind}: {image.error}")


if __name__ == "__main__":
    main()
