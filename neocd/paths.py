"""Building and splitting file paths for system, save and content files."""

from __future__ import annotations

import os
from typing import Optional, Tuple

SYSTEM_SUBDIR = "neocd"
DEFAULT_SRM_FILENAME = "neocd"
SRM_EXT = ".srm"

_SLASHES = frozenset(c for c in ("/", os.sep, os.altsep) if c)


def _is_slash(char: str) -> bool:
    return char in _SLASHES


def _last_slash(path: str) -> int:
    return max(path.rfind(slash) for slash in _SLASHES)


def _basename(path: str) -> str:
    return path[_last_slash(path) + 1:]


def _extension(path: Optional[str]) -> str:
    if not path:
        return ""
    base = _basename(path)
    dot = base.rfind(".")
    return "" if dot < 0 else base[dot + 1:]


def path_is_empty(path: Optional[str]) -> bool:
    return not path


def path_ends_with_slash(path: Optional[str]) -> bool:
    return bool(path) and _is_slash(path[-1])


def path_replace_filename(path: Optional[str], new_filename: Optional[str]) -> str:
    """Keep the directory part of ``path`` and put ``new_filename`` after it."""
    result = ""
    if not path_is_empty(path):
        slash = _last_slash(path)
        result = path[: slash + 1] if slash >= 0 else "." + os.sep
    if not path_is_empty(new_filename):
        result += new_filename
    return result


def path_get_filename(path: Optional[str]) -> str:
    """The file name of ``path`` without directory and extension."""
    if path_is_empty(path):
        return ""
    base = _basename(path)
    dot = base.rfind(".")
    return base if dot < 0 else base[:dot]


def system_path(system_directory: Optional[str]) -> str:
    base = "." + os.sep if path_is_empty(system_directory) else system_directory
    if not path_ends_with_slash(base):
        base += os.sep
    return base + SYSTEM_SUBDIR


def _save_path(system_directory: Optional[str], save_directory: Optional[str]) -> str:
    if path_is_empty(save_directory):
        return system_path(system_directory)
    if path_ends_with_slash(save_directory):
        return save_directory[:-1]
    return save_directory


def make_path_separator(
    path: Optional[str], separator: Optional[str], filename: Optional[str]
) -> str:
    return "".join(part for part in (path, separator, filename) if part)


def make_path(path: Optional[str], filename: Optional[str]) -> str:
    return make_path_separator(path, os.sep, filename)


def make_system_path(system_directory: Optional[str], filename: Optional[str]) -> str:
    return system_path(system_directory) + os.sep + (filename or "")


def make_save_path(
    system_directory: Optional[str], save_directory: Optional[str], filename: Optional[str]
) -> str:
    return _save_path(system_directory, save_directory) + os.sep + (filename or "")


def make_srm_path(
    per_content_saves: bool,
    content_path: Optional[str],
    system_directory: Optional[str],
    save_directory: Optional[str],
) -> str:
    """Full path of the backup RAM file, per content or shared."""
    srm_filename = ""
    if per_content_saves:
        content_filename = path_get_filename(content_path)
        if content_filename:
            srm_filename = content_filename + SRM_EXT
    if not srm_filename:
        srm_filename = DEFAULT_SRM_FILENAME + SRM_EXT

    if per_content_saves:
        return make_save_path(system_directory, save_directory, srm_filename)
    return make_system_path(system_directory, srm_filename)


def string_compare_insensitive(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    if len(a) != len(b):
        return False
    return all(x.lower() == y.lower() for x, y in zip(a, b))


def _ext_is_archive(ext: str) -> bool:
    return string_compare_insensitive(ext, "zip")


def path_is_archive(path: str) -> bool:
    return _ext_is_archive(_extension(path))


def path_is_bios_file(path: str) -> bool:
    ext = _extension(path)
    return string_compare_insensitive(ext, "rom") or string_compare_insensitive(ext, "bin")


def _extension_before(path: str, end: int) -> str:
    for position in range(end - 1, -1, -1):
        char = path[position]
        if char == os.sep:
            return ""
        if char == ".":
            return path[position + 1:end]
    return ""


def split_compressed_path(path: str) -> Tuple[str, str]:
    """Split ``archive.zip#member`` into ``(archive, member)``; ``("", path)`` otherwise."""
    delimiter = path.find("#")
    while delimiter >= 0:
        if _ext_is_archive(_extension_before(path, delimiter)):
            return path[:delimiter], path[delimiter + 1:]
        delimiter = path.find("#", delimiter + 1)
    return "", path