"""
RPM target adapter.

Writes <name>-<version>-<release>.spec into the work directory; the work
directory itself serves as the rpmbuild buildroot.
"""

import base64
import logging
from pathlib import Path

from xenomorph.core.arch import deb_to_rpm_arch
from xenomorph.core.config import Config
from xenomorph.core.fs import write_text
from xenomorph.core.reconcile import is_shell_script
from xenomorph.core.version import rpm_version
from xenomorph.models.package import Format, PackageInfo
from xenomorph.targets.base import SingleUse, conversion_trailer, scripts_to_write

logger = logging.getLogger(__name__)

# rpm scriptlets can only be shell, so anything else is shipped encoded and
# unpacked into a temporary file at install time.
SCRIPT_WRAPPER = """\
#!/bin/sh
set -e
tmpdir=$(mktemp -d)
echo '{encoded}' | base64 -d > "$tmpdir/script"
chmod 755 "$tmpdir/script"
"$tmpdir/script" "$@"
rm -rf "$tmpdir"
"""


def wrap_script(script: str) -> str:
    """Return a shell scriptlet running `script`, unchanged if it already is shell."""
    if script.startswith("#!") and is_shell_script(script):
        return script
    encoded = base64.b64encode(script.encode("utf-8")).decode("ascii")
    return SCRIPT_WRAPPER.format(encoded=encoded)


def first_line(text: str) -> str:
    return text.strip().split("\n", 1)[0]


class RpmTarget(SingleUse):
    """Generates an rpm spec file for an unpacked work directory."""

    format = Format.RPM

    def __init__(self, info: PackageInfo, work_dir: Path, config: Config):
        self.info = info
        self.work_dir = work_dir
        self.config = config

    @property
    def spec_path(self) -> Path:
        info = self.info
        return self.work_dir / f"{info.name}-{info.version}-{info.release}.spec"

    def generate(self) -> None:
        self._claim()
        self.sanitize_info()
        write_text(self.spec_path, self.render_spec())
        logger.debug(f"Wrote {self.spec_path}")

    def sanitize_info(self) -> None:
        info = self.info
        for script, body in info.active_scripts().items():
            info.scripts[script] = wrap_script(body)
        info.version = rpm_version(info.version)
        info.arch = deb_to_rpm_arch(info.arch)

    def file_list(self) -> list[str]:
        entries = []
        for path in self.info.files:
            if path == "/":
                continue
            on_disk = self.work_dir / path.lstrip("/")
            # Note all filenames are quoted in case they contain spaces.
            if on_disk.is_dir() and not on_disk.is_symlink():
                entries.append(f'%dir "{path}"')
            elif path in self.info.conffiles:
                entries.append(f'%config "{path}"')
            else:
                entries.append(f'"{path}"')
        return entries

    def render_spec(self) -> str:
        info = self.info
        header = [
            f"Buildroot: {self.work_dir.resolve()}",
            f"Name: {info.name}",
            f"Version: {info.version}",
            f"Release: {info.release}",
        ]
        if info.dependencies:
            header.append(f"Requires: {', '.join(info.dependencies)}")
        header += [
            f"Summary: {first_line(info.summary) or info.name}",
            f"License: {first_line(info.copyright) or 'unknown'}",
            f"Distribution: {info.distribution}",
            f"Group: Converted/{info.group}",
            "",
            "%define _rpmdir ../",
            "%define _rpmfilename %%{NAME}-%%{VERSION}-%%{RELEASE}.%%{ARCH}.rpm",
            "%define _unpackaged_files_terminate_build 0",
            "",
        ]

        sections = []
        for script, body in scripts_to_write(info).items():
            sections.append(f"{script.name_for(Format.RPM)}\n{body.rstrip()}\n\n")

        body = [
            "%description",
            info.description,
            "",
            conversion_trailer(info),
            "",
            "%files",
            *self.file_list(),
        ]
        return "\n".join(header) + "\n" + "".join(sections) + "\n".join(body) + "\n"
