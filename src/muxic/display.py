"""Rendering of file system text for terminal output."""

from __future__ import annotations


def display_path(path: str) -> str:
    """Return path with undecodable bytes shown as backslash escapes.

    On POSIX a file name that is not valid UTF-8 arrives as a str holding lone
    surrogates, which strict text streams refuse to encode.
    """
    return path.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")
