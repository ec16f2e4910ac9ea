"""Tests for the command-line interface."""

import json
import struct

import pytest
from click.testing import CliRunner

from machobuild import LC_UUID, fat_binary, macho_image, segment_command, text_and_uuid_image
from machwalk.cli import (
    EXIT_OK,
    EXIT_INPUT_ERROR,
    EXIT_CORRUPT_INPUT,
    EXIT_UNSUPPORTED_FORMAT,
    main,
    exit_code,
)
from machwalk.loader.macho import MachOFile
from machwalk.errors import InputUnavailable, MalformedFatEntry
from machwalk.loader.constants import CPU_TYPE_ARM64, CPU_TYPE_X86_64


@pytest.fixture
def runner():
    return CliRunner()


class TestDump:
    """Tests for the dump command."""

    def test_thin(self, runner, write_binary, thin_image):
        """Test the line-oriented dump of a thin image."""
        result = runner.invoke(main, ["dump", write_binary(thin_image)])

        assert result.exit_code == EXIT_OK
        assert "Magic: 0xfeedfacf" in result.output
        assert "Is Fat: False" in result.output
        assert "CPU Type Name: arm64" in result.output
        assert "Number of Load Commands: 2" in result.output
        assert "Load Command: LC_SEGMENT_64" in result.output
        assert "Segment Name: __TEXT" in result.output
        assert "Load Command: LC_UUID" in result.output

    def test_fat(self, runner, write_binary, universal_binary):
        result = runner.invoke(main, ["dump", write_binary(universal_binary)])

        assert result.exit_code == EXIT_OK
        assert "Is Fat: True" in result.output
        assert "Architecture 0: x86_64" in result.output
        assert "Architecture 1: arm64" in result.output
        assert result.output.count("Segment Name: __TEXT") == 2

    def test_json(self, runner, write_binary, universal_binary):
        """Test JSON output parses and carries both architectures."""
        result = runner.invoke(main, ["dump", "--json", write_binary(universal_binary)])

        assert result.exit_code == EXIT_OK
        report = json.loads(result.stdout)
        assert report["is_fat"] is True
        assert [a["cpu_type_name"] for a in report["archs"]] == ["x86_64", "arm64"]

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["dump", str(tmp_path / "nope")])

        assert result.exit_code == EXIT_INPUT_ERROR

    def test_truncated_file(self, runner, write_binary):
        data = struct.pack("<I", 0xFEEDFACF) + b"\x00" * 6

        result = runner.invoke(main, ["dump", write_binary(data)])

        assert result.exit_code == EXIT_INPUT_ERROR

    def test_unsupported_format(self, runner, write_binary):
        result = runner.invoke(main, ["dump", write_binary(b"\x7fELF" + b"\x00" * 60)])

        assert result.exit_code == EXIT_UNSUPPORTED_FORMAT

    def test_corrupt_member_still_reports_siblings(self, runner, write_binary):
        """Test partial output and the corrupt exit code."""
        broken = macho_image(
            [segment_command(b"__TEXT"), struct.pack("<II", LC_UUID, 0) + b"\x00" * 16],
            cputype=CPU_TYPE_X86_64,
        )
        data = fat_binary(
            [(CPU_TYPE_X86_64, broken), (CPU_TYPE_ARM64, text_and_uuid_image())]
        )

        result = runner.invoke(main, ["dump", write_binary(data)])

        assert result.exit_code == EXIT_CORRUPT_INPUT
        assert "malformed_load_command" in result.output
        assert "Architecture 1: arm64" in result.output

    def test_limit_option(self, runner, write_binary, thin_image):
        """Test --max-load-commands is applied to the walk."""
        result = runner.invoke(
            main, ["--max-load-commands", "1", "dump", write_binary(thin_image)]
        )

        assert result.exit_code == EXIT_CORRUPT_INPUT

    def test_limit_from_environment(self, runner, write_binary, universal_binary):
        result = runner.invoke(
            main,
            ["dump", write_binary(universal_binary)],
            env={"MACHWALK_MAX_FAT_ARCHS": "1"},
        )

        assert result.exit_code == EXIT_CORRUPT_INPUT


class TestInfo:
    """Tests for the info command."""

    def test_info(self, runner, write_binary, universal_binary):
        result = runner.invoke(main, ["info", write_binary(universal_binary)])

        assert result.exit_code == EXIT_OK
        assert "Architectures" in result.output
        assert "__TEXT" in result.output
        assert "LC_UUID" in result.output

    def test_verbose(self, runner, write_binary, thin_image):
        result = runner.invoke(main, ["-v", "info", write_binary(thin_image)])

        assert result.exit_code == EXIT_OK


class TestExitCode:
    """Tests for exit code selection."""

    def test_input_error_wins(self):
        macho = MachOFile(path=None, error=InputUnavailable("gone"))

        assert exit_code(macho) == EXIT_INPUT_ERROR

    def test_corrupt(self):
        macho = MachOFile(path=None, error=MalformedFatEntry("bad table"))

        assert exit_code(macho) == EXIT_CORRUPT_INPUT

    def test_ok(self, thin_image):
        assert exit_code(MachOFile.from_bytes(thin_image)) == EXIT_OK
