"""Unpacking node log archives onto the host."""

from __future__ import annotations

import logging
import os
import tarfile
from typing import BinaryIO

_CHUNK = 64 * 1024


class _Prefixed:
    """A reader that yields some already-read bytes before the rest of a stream."""

    def __init__(self, prefix: bytes, stream: BinaryIO) -> None:
        self._prefix = prefix
        self._stream = stream

    def read(self, size: int = -1) -> bytes:
        if not self._prefix:
            return self._stream.read(size)
        if size is None or size < 0:
            data, self._prefix = self._prefix + self._stream.read(), b""
            return data
        data, self._prefix = self._prefix[:size], self._prefix[size:]
        if len(data) < size:
            data += self._stream.read(size - len(data))
        return data


def _drain(stream: BinaryIO) -> None:
    while stream.read(_CHUNK):
        pass


def untar(stream: BinaryIO, directory, logger: logging.Logger | None = None) -> None:
    """Read a tar archive from stream and write its files and directories into directory.

    Entries of other types are skipped with a warning. The stream is read to
    its end.
    """
    logger = logger or logging.getLogger(__name__)
    directory = os.fspath(directory)

    first = stream.read(tarfile.BLOCKSIZE)
    if not first:
        return
    reader = _Prefixed(first, stream)

    try:
        with tarfile.open(fileobj=reader, mode="r|") as archive:
            for member in archive:
                target = os.path.normpath(os.path.join(directory, *member.name.split("/")))
                if member.isreg():
                    _write_member(archive, member, target)
                elif member.isdir():
                    if not os.path.exists(target):
                        os.makedirs(target, mode=0o755, exist_ok=True)
                else:
                    logger.warning(
                        "tar file entry %s contained unsupported file type %r",
                        member.name,
                        member.type,
                    )
    except tarfile.TarError as exc:
        raise tarfile.ReadError(f"tar reading error: {exc}") from exc

    _drain(reader)


def _write_member(archive: tarfile.TarFile, member: tarfile.TarInfo, target: str) -> None:
    source = archive.extractfile(member)
    written = 0
    try:
        fd = os.open(target, os.O_CREAT | os.O_RDWR, member.mode)
        with os.fdopen(fd, "wb") as out:
            while chunk := source.read(_CHUNK):
                out.write(chunk)
                written += len(chunk)
    except OSError as exc:
        raise OSError(f"error writing to {target}: {exc}") from exc
    if written != member.size:
        raise OSError(f"only wrote {written} bytes to {target}; expected {member.size}")