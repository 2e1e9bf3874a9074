"""Low-level filesystem helpers used by the linker."""

from __future__ import annotations

import asyncio
import hashlib
import os
from pathlib import Path

import aiofiles
import aiofiles.os

_CHUNK_SIZE = 1024 * 128


async def copy_file(src: Path, dst: Path) -> str:
    """Copy ``src`` to ``dst`` and return the sha256 of the copied bytes.

    The bytes go to a temp file beside ``dst`` that replaces it only once the
    copy is complete, so a failed copy never leaves a partial file behind.
    """
    tmp_path = dst.with_name(f".{dst.name}.agentlink-tmp")
    digest = hashlib.sha256()
    try:
        async with aiofiles.open(src, "rb") as reader, aiofiles.open(tmp_path, "wb") as writer:
            while True:
                chunk = await reader.read(_CHUNK_SIZE)
                if not chunk:
                    break
                digest.update(chunk)
                await writer.write(chunk)
        await asyncio.to_thread(os.replace, tmp_path, dst)
    except OSError:
        if await path_exists(tmp_path):
            await aiofiles.os.remove(tmp_path)
        raise
    return digest.hexdigest()


async def file_digest(path: Path) -> str:
    digest = hashlib.sha256()
    async with aiofiles.open(path, "rb") as reader:
        while True:
            chunk = await reader.read(_CHUNK_SIZE)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()


async def path_exists(path: Path) -> bool:
    """True for anything at ``path``, including dangling symlinks."""
    return await asyncio.to_thread(os.path.lexists, path)


async def is_symlink(path: Path) -> bool:
    return await asyncio.to_thread(os.path.islink, path)


async def read_link(path: Path) -> str:
    return await asyncio.to_thread(os.readlink, path)


async def create_symlink(src: Path, dst: Path) -> None:
    await asyncio.to_thread(os.symlink, src, dst)


async def remove_entry(path: Path) -> None:
    """Remove a file or symlink (never follows the link)."""
    await aiofiles.os.remove(path)


async def list_dir(path: Path) -> list[str]:
    return await asyncio.to_thread(os.listdir, path)


async def remove_dir_if_empty(path: Path) -> bool:
    if not await aiofiles.os.path.isdir(path) or await is_symlink(path):
        return False
    if await list_dir(path):
        return False
    await aiofiles.os.rmdir(path)
    return True
