"""
Container Decoder.

A .deb is an `ar` member-archive whose control.tar* and data.tar* members are
tarballs wrapped in an optional compression codec. When dpkg-deb is installed
it is asked for the nested tarballs; otherwise the archive is decoded here.
Both strategies hand back the same thing: the fully decompressed tar bytes.
"""

from __future__ import annotations

import bz2
import gzip
import logging
import lzma
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Protocol, runtime_checkable

from xenomorph.core.config import Config
from xenomorph.core.errors import MalformedArchive, MissingMember, UnknownCodec
from xenomorph.core.process import command_exists, run_command

logger = logging.getLogger(__name__)

AR_MAGIC = b"!<arch>\n"
AR_HEADER_SIZE = 60
AR_END_MARKER = b"`\n"

CODECS = {
    "": None,  # already a plain tarball
    ".gz": gzip.decompress,
    ".bz2": bz2.decompress,
    ".xz": lzma.decompress,
    ".lzma": lzma.decompress,
}


@dataclass
class ArMember:
    name: str
    data: bytes


def iter_members(stream: BinaryIO) -> Iterator[ArMember]:
    """Yield the members of an `ar` archive in order."""
    if stream.read(len(AR_MAGIC)) != AR_MAGIC:
        raise MalformedArchive("Missing ar global header")

    while True:
        header = stream.read(AR_HEADER_SIZE)
        if not header:
            return
        if len(header) != AR_HEADER_SIZE or header[58:60] != AR_END_MARKER:
            raise MalformedArchive("Truncated or corrupt ar member header")

        # GNU ar terminates names with '/'
        name = header[0:16].decode("ascii", errors="replace").strip().rstrip("/")
        try:
            size = int(header[48:58].decode("ascii").strip() or "0")
        except ValueError as exc:
            raise MalformedArchive(f"Invalid size for ar member {name!r}") from exc

        data = stream.read(size)
        if len(data) != size:
            raise MalformedArchive(f"Truncated ar member {name!r}")
        if size % 2 == 1:
            stream.read(1)

        yield ArMember(name=name, data=data)


def decode_member(member: ArMember, prefix: str) -> bytes:
    """Decompress a member according to the codec suffix following the prefix."""
    suffix = member.name[len(prefix):]
    if suffix not in CODECS:
        raise UnknownCodec(member.name)
    decompress = CODECS[suffix]
    if decompress is None:
        return member.data
    try:
        return decompress(member.data)
    except (OSError, EOFError, lzma.LZMAError) as exc:
        raise MalformedArchive(f"Cannot decompress {member.name}: {exc}") from exc


@runtime_checkable
class MemberExtractor(Protocol):
    """
    Strategy interface for pulling nested tarballs out of a .deb.

    Implementations return the decompressed bytes of the first member whose
    name starts with the prefix ('control.tar' or 'data.tar').
    """

    def extract_member(self, prefix: str) -> bytes:
        ...


class ArchiveExtractor:
    """Pure-Python fallback used when dpkg-deb is not installed."""

    def __init__(self, path: Path):
        self.path = path

    def extract_member(self, prefix: str) -> bytes:
        with open(self.path, "rb") as stream:
            for member in iter_members(stream):
                if member.name.startswith(prefix):
                    logger.debug(f"Decoding {member.name} from {self.path}")
                    return decode_member(member, prefix)
        raise MissingMember(prefix, self.path)


class DpkgDebExtractor:
    """Native strategy: lets dpkg-deb locate and decompress the members."""

    FLAGS = {
        "control.tar": "--ctrl-tarfile",
        "data.tar": "--fsys-tarfile",
    }

    def __init__(self, path: Path, config: Config, dpkg_deb: str = "dpkg-deb"):
        self.path = path
        self.config = config
        self.dpkg_deb = dpkg_deb

    def extract_member(self, prefix: str) -> bytes:
        flag = self.FLAGS.get(prefix)
        if flag is None:
            raise MissingMember(prefix, self.path)
        return run_command([self.dpkg_deb, flag, self.path], self.config).stdout


def select_extractor(path: Path, config: Config) -> MemberExtractor:
    """Pick the extraction strategy once, based on whether dpkg-deb is available."""
    if command_exists("dpkg-deb"):
        return DpkgDebExtractor(path, config)
    logger.debug("dpkg-deb not found, decoding the ar archive directly")
    return ArchiveExtractor(path)

