from __future__ import annotations

import asyncio
import mimetypes
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable
from uuid import uuid4


@dataclass(frozen=True)
class Artifact:
    key: str
    data: bytes
    content_type: str


@runtime_checkable
class ArtifactStore(Protocol):
    async def put(self, key: str, data: bytes, content_type: str) -> None: ...

    async def get(self, key: str) -> Artifact | None: ...


def artifact_key(session_id: str, extension: str) -> str:
    return f"files/{session_id}/{uuid4()}.{extension}"


def _safe_relative(key: str) -> PurePosixPath:
    path = PurePosixPath(key)
    if path.is_absolute() or ".." in path.parts or not path.parts:
        raise ValueError(f"Invalid artifact key: {key!r}")
    return path


class LocalArtifactStore:
    """Filesystem-backed blob store; keys map to paths under ``root``."""

    def __init__(self, root: str):
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        return self._root.joinpath(*_safe_relative(key).parts)

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path_for(key)
        await asyncio.to_thread(self._write, path, data)

    async def get(self, key: str) -> Artifact | None:
        try:
            path = self._path_for(key)
        except ValueError:
            return None
        if not path.is_file():
            return None
        data = await asyncio.to_thread(path.read_bytes)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return Artifact(key=key, data=data, content_type=content_type)

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".part")
        tmp.write_bytes(data)
        tmp.replace(path)
