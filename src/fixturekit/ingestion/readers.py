"""
File-system adapters for the reader/writer collaborators.

The loader only needs ``async reader(path) -> str`` and
``async writer(path, text) -> None``; these adapters run blocking file
access in a worker thread.
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

Reader = Callable[[str], Awaitable[str]]
Writer = Callable[[str, str], Awaitable[None]]


def file_reader(encoding: str = "utf-8") -> Reader:
    """
    Build a reader that loads text files.

    Args:
        encoding: Text encoding of fixture files.

    Returns:
        Async reader; raises FileNotFoundError for missing paths.
    """

    async def read(path: str) -> str:
        return await asyncio.to_thread(Path(path).read_text, encoding=encoding)

    return read


def file_writer(encoding: str = "utf-8") -> Writer:
    """
    Build a writer that saves text files, creating parent directories.

    Args:
        encoding: Text encoding for written files.

    Returns:
        Async writer.
    """

    def _write(path: str, text: str) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding=encoding)

    async def write(path: str, text: str) -> None:
        await asyncio.to_thread(_write, path, text)

    return write
