"""Shared fixtures."""

import pytest

from machobuild import fat_binary, text_and_uuid_image
from machwalk.loader.constants import CPU_TYPE_ARM64, CPU_TYPE_X86_64


@pytest.fixture
def thin_image() -> bytes:
    """Little-endian 64-bit image: __TEXT segment then LC_UUID."""
    return text_and_uuid_image()


@pytest.fixture
def universal_binary() -> bytes:
    """Big-endian fat header with x86_64 and arm64 slices."""
    return fat_binary(
        [
            (CPU_TYPE_X86_64, text_and_uuid_image(cputype=CPU_TYPE_X86_64)),
            (CPU_TYPE_ARM64, text_and_uuid_image(cputype=CPU_TYPE_ARM64)),
        ]
    )


@pytest.fixture
def write_binary(tmp_path):
    """Write bytes to a file under tmp_path and return its path."""

    def _write(data: bytes, name: str = "binary") -> str:
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)

    return _write
