"""Slackware .tgz target adapter: scripts go into install/ under Slackware names."""

import logging
import os
from pathlib import Path

from xenomorph.core.config import Config
from xenomorph.core.fs import write_text
from xenomorph.models.package import Format, PackageInfo
from xenomorph.targets.base import SingleUse, scripts_to_write

logger = logging.getLogger(__name__)


class TgzTarget(SingleUse):
    format = Format.TGZ

    def __init__(self, info: PackageInfo, work_dir: Path, config: Config):
        self.info = info
        self.work_dir = work_dir
        self.config = config

    def generate(self) -> None:
        self._claim()
        scripts = scripts_to_write(self.info)
        if not scripts:
            return

        install_dir = self.work_dir / "install"
        install_dir.mkdir(exist_ok=True)
        os.chmod(install_dir, 0o755)
        for script, body in scripts.items():
            write_text(install_dir / script.name_for(Format.TGZ), body, mode=0o755)
            logger.debug(f"Wrote install/{script.name_for(Format.TGZ)}")
