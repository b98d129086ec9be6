"""Shared fixtures: in-memory builders for ar archives, tarballs and .deb files."""

import bz2
import gzip
import io
import lzma
import tarfile

import pytest

from xenomorph.core import reconcile
from xenomorph.core.config import Config
from xenomorph.core.errors import ExternalToolFailure, UnresolvedIdentity

XENOMORPH_CONTROL = """\
Package: xenomorph
Version: 0.1.0-2
Architecture: amd64
Maintainer: A B <a@b>
Section: Utilities
Description: Morph between formats
"""

COMPRESSORS = {
    "": lambda data: data,
    ".gz": gzip.compress,
    ".bz2": bz2.compress,
    ".xz": lzma.compress,
    ".lzma": lambda data: lzma.compress(data, format=lzma.FORMAT_ALONE),
}


def build_tar(entries: dict[str, bytes | None], modes: dict[str, int] | None = None) -> bytes:
    """Build an uncompressed tarball. A None body makes a directory entry."""
    modes = modes or {}
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        for name, body in entries.items():
            info = tarfile.TarInfo(name)
            if body is None:
                info.type = tarfile.DIRTYPE
                info.mode = modes.get(name, 0o755)
                tar.addfile(info)
            else:
                info.mode = modes.get(name, 0o644)
                info.size = len(body)
                tar.addfile(info, io.BytesIO(body))
    return buffer.getvalue()


def build_ar(members: list[tuple[str, bytes]]) -> bytes:
    """Build a GNU style ar archive ('/'-terminated names, odd sizes padded)."""
    chunks = [b"!<arch>\n"]
    for name, data in members:
        header = f"{name + '/':<16}{0:<12}{0:<6}{0:<6}{100644:<8}{len(data):<10}".encode("ascii")
        chunks.append(header + b"`\n")
        chunks.append(data)
        if len(data) % 2:
            chunks.append(b"\n")
    return b"".join(chunks)


@pytest.fixture
def config():
    return Config(patch_dirs=())


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Run the test from inside tmp_path, where work directories get created."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def make_deb(tmp_path):
    """Factory writing a .deb into tmp_path and returning its path."""

    def _make(
        control: str = XENOMORPH_CONTROL,
        data: dict[str, bytes | None] | None = None,
        control_extra: dict[str, bytes] | None = None,
        codec: str = "",
        filename: str = "xenomorph_0.1.0-2_amd64.deb",
        data_modes: dict[str, int] | None = None,
    ):
        control_entries = {"./control": control.encode()}
        control_entries.update(control_extra or {})
        control_tar = build_tar(control_entries, {"./postinst": 0o755, "./preinst": 0o755})
        data_tar = build_tar(data, data_modes) if data is not None else b""

        compress = COMPRESSORS[codec]
        path = tmp_path / filename
        path.write_bytes(
            build_ar(
                [
                    ("debian-binary", b"2.0\n"),
                    (f"control.tar{codec}", compress(control_tar)),
                    (f"data.tar{codec}", compress(data_tar)),
                ]
            )
        )
        return path

    return _make


@pytest.fixture
def root_only_identities(monkeypatch):
    """Pretend only the account and group named 'root' exist on this host."""

    def uid(name):
        if name == "root":
            return 0
        raise UnresolvedIdentity(name, "user")

    def gid(name):
        if name == "root":
            return 0
        raise UnresolvedIdentity(name, "group")

    monkeypatch.setattr(reconcile, "root_uid", uid)
    monkeypatch.setattr(reconcile, "root_gid", gid)


HELLO_FIELDS = {
    "%{NAME}": "hello",
    "%{VERSION}": "2.10",
    "%{RELEASE}": "3.fc39",
    "%{SUMMARY}": "Prints a familiar, friendly greeting",
    "%{DESCRIPTION}": "The GNU Hello program produces a familiar greeting.",
    "%{LICENSE}": "GPLv3+",
    "%{GROUP}": "Applications/Text",
    "%{ARCH}": "x86_64",
    "%{CHANGELOGTEXT}": "- rebuilt",
    "%{POSTIN}": "/sbin/ldconfig",
}


class FakeReader:
    """Answers rpm queries from dictionaries instead of running rpm."""

    def __init__(self, fields=None, files=(), conffiles=(), modes=(), archive=b"cpio"):
        self.fields = dict(HELLO_FIELDS if fields is None else fields)
        self.files = list(files)
        self.conffiles = list(conffiles)
        self.modes = list(modes)
        self.archive = archive

    def read_field(self, tag):
        # modern rpm refuses the retired COPYRIGHT tag outright
        if tag == "%{COPYRIGHT}" and tag not in self.fields:
            raise ExternalToolFailure("rpm", "rpm -qp --queryformat %{COPYRIGHT}", 1)
        return self.fields.get(tag)

    def read_file_list(self, flag):
        return self.conffiles if flag == "-c" else self.files

    def read_info(self):
        return "Name        : hello\n"

    def read_requires(self):
        return []

    def read_file_modes(self):
        return self.modes

    def cpio_archive(self):
        return self.archive
