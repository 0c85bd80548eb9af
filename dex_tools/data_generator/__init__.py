"""Unique names, validation helpers and fixture files for content tests."""

from .content_data_generator import (
    DEFAULT_FOLDER_PREFIX,
    FORBIDDEN_FOLDER_CHARS,
    TEST_IMAGES,
    build_png,
    create_test_file,
    ensure_directory,
    ensure_test_images,
    generate_content_name,
    generate_folder_name,
    get_test_files,
    is_valid_email,
    is_valid_file_size,
    is_valid_file_type,
    is_valid_length,
    is_valid_url,
    random_email,
    random_string,
    random_url,
)

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
