"""
================================================================================
Content Test Data Generator
================================================================================

Data and fixture-file generation for DEX Manager content tests.

Features:
- Unique folder/content names that respect DEX Manager naming rules
- Random strings, URLs and e-mail addresses
- Validation helpers (URL, e-mail, file type, file size, length)
- Fixture files: plain text files and valid PNG images

Names follow the pattern `<prefix> - YYYY-MM-DD HH-MM-SS - XXXX` so that
concurrent workers never collide on the shared DEX Manager tenant.

================================================================================
"""

import random
import re
import string
import struct
import zlib
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional, Union
from urllib.parse import urlparse

from loguru import logger


# ================================================================================
# Constants
# ================================================================================

# Characters DEX Manager rejects in folder names
FORBIDDEN_FOLDER_CHARS = '\\/:*?"<>|'

DEFAULT_FOLDER_PREFIX = "CONTENIDO DEX MANAGER"

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Fixture images used by the upload suites
TEST_IMAGES: Dict[str, str] = {
    "image": "test-images.png",
    "image_1": "test_imagen_1.png",
    "image_2": "test_imagen_2.png",
}


# ================================================================================
# Random Data
# ================================================================================

def random_string(length: int = 10, charset: Optional[str] = None) -> str:
    """Random string drawn from `charset` (ASCII letters and digits by default)."""
    chars = charset or (string.ascii_letters + string.digits)
    return "".join(random.choice(chars) for _ in range(length))


def random_email() -> str:
    domain = random.choice(["test.com", "example.com", "demo.org", "sample.net"])
    return f"{random_string(8).lower()}@{domain}"


def random_url() -> str:
    protocol = random.choice(["http", "https"])
    domain = random.choice(["example.com", "test.org", "demo.net"])
    path = random.choice(["", "/page", "/api/v1", "/content", "/dashboard"])
    return f"{protocol}://{domain}{path}"


def _timestamped_name(prefix: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    suffix = random_string(4, string.ascii_uppercase + string.digits)
    return f"{prefix} - {now:%Y-%m-%d %H-%M-%S} - {suffix}"


def generate_folder_name(
    prefix: str = DEFAULT_FOLDER_PREFIX,
    now: Optional[datetime] = None,
) -> str:
    """
    Generate a unique folder name accepted by DEX Manager.

    Args:
        prefix: Leading label (must not contain forbidden characters)
        now: Timestamp to embed (current time if omitted)

    Returns:
        Name of the form `<prefix> - YYYY-MM-DD HH-MM-SS - XXXX`

    Raises:
        ValueError: If the prefix contains a forbidden character
    """
    bad = [ch for ch in prefix if ch in FORBIDDEN_FOLDER_CHARS]
    if bad:
        raise ValueError(f"Folder prefix contains forbidden characters: {''.join(bad)}")
    return _timestamped_name(prefix, now)


def generate_content_name(content_type: str = "CONTENIDO", now: Optional[datetime] = None) -> str:
    """Unique name for non-folder content (web addresses, media)."""
    return _timestamped_name(content_type, now)


# ================================================================================
# Validation Helpers
# ================================================================================

def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return bool(parsed.scheme and parsed.netloc)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_file_type(file_name: str, allowed_types: Iterable[str]) -> bool:
    """Check the file extension (without dot, case-insensitive)."""
    extension = Path(file_name).suffix.lower().lstrip(".")
    return extension in {t.lower().lstrip(".") for t in allowed_types}


def is_valid_file_size(file_path: Union[str, Path], max_size_mb: float) -> bool:
    """Missing files count as size 0."""
    path = Path(file_path)
    size = path.stat().st_size if path.exists() else 0
    return size <= max_size_mb * 1024 * 1024


def is_valid_length(value: str, min_length: int, max_length: int) -> bool:
    return min_length <= len(value) <= max_length


# ================================================================================
# Fixture Files
# ================================================================================

def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensures a directory exists, creating it if necessary.

    Returns:
        The path (for chaining)
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def create_test_file(file_path: Union[str, Path], content: str = "Contenido de prueba") -> Path:
    """Create a text fixture unless it already exists."""
    file_path = Path(file_path)
    ensure_directory(file_path.parent)
    if not file_path.exists():
        file_path.write_text(content, encoding="utf-8")
        logger.debug(f"Created test file: {file_path}")
    return file_path


def _png_chunk(chunk_type: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)


def build_png(width: int = 64, height: int = 64, color=(0, 120, 215)) -> bytes:
    """
    Encode a solid-colour 8-bit RGB PNG.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        color: (r, g, b) tuple
    """
    row = b"\x00" + bytes(color) * width  # filter type 0 per scanline
    raw = row * height
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(raw, 9))
        + _png_chunk(b"IEND", b"")
    )


def ensure_test_images(directory: Union[str, Path]) -> Dict[str, Path]:
    """
    Make sure the upload fixtures exist in `directory`.

    Missing images are generated with distinct colours; existing files are
    left untouched.

    Returns:
        Mapping of fixture key to file path (see TEST_IMAGES)
    """
    directory = ensure_directory(directory)
    colors = [(0, 120, 215), (16, 124, 16), (232, 17, 35)]
    files = {}
    for (key, file_name), color in zip(TEST_IMAGES.items(), colors):
        path = directory / file_name
        if not path.exists():
            path.write_bytes(build_png(color=color))
            logger.info(f"Generated test image: {path}")
        files[key] = path
    return files


def get_test_files(directory: Union[str, Path]) -> Dict[str, Path]:
    """Paths of the upload fixtures (existence not checked)."""
    directory = Path(directory)
    return {key: directory / file_name for key, file_name in TEST_IMAGES.items()}


__all__ = [
    "DEFAULT_FOLDER_PREFIX",
    "FORBIDDEN_FOLDER_CHARS",
    "TEST_IMAGES",
    "build_png",
    "create_test_file",
    "ensure_directory",
    "ensure_test_images",
    "generate_content_name",
    "generate_folder_name",
    "get_test_files",
    "is_valid_email",
    "is_valid_file_size",
    "is_valid_file_type",
    "is_valid_length",
    "is_valid_url",
    "random_email",
    "random_string",
    "random_url",
]
