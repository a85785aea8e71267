from __future__ import annotations
"""Helpers for mapping flat S3 keys onto a path-like view."""

DELIMITER = "/"


def display_name(bucket_name: str, prefix: str) -> str:
    if not prefix or prefix.isspace():
        return bucket_name
    return f"{bucket_name}{DELIMITER}{prefix}"


def folder_key(name: str) -> str:
    """Return the marker key for a folder: ``name`` with exactly one trailing slash."""

    stripped = name.rstrip(DELIMITER)
    if not stripped:
        raise ValueError("Folder name cannot be empty")
    return f"{stripped}{DELIMITER}"


def compose_s3_key(prefix: str, name: str) -> str:
    key_name = name.strip()
    if not key_name:
        raise ValueError("Object name cannot be empty")
    cleaned_prefix = prefix.strip().lstrip(DELIMITER)
    if cleaned_prefix and not cleaned_prefix.endswith(DELIMITER):
        cleaned_prefix += DELIMITER
    return f"{cleaned_prefix}{key_name}" if cleaned_prefix else key_name


def parent_prefix(prefix: str) -> str:
    trimmed = prefix.rstrip(DELIMITER)
    if DELIMITER not in trimmed:
        return ""
    return trimmed.rsplit(DELIMITER, 1)[0] + DELIMITER
