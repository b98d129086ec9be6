"""Linux Standard Base target adapter: an rpm that is named lsb-* and requires lsb."""

from xenomorph.models.package import Format
from xenomorph.targets.rpm import RpmTarget


class LsbTarget(RpmTarget):
    format = Format.LSB

    def sanitize_info(self) -> None:
        info = self.info
        if not info.name.startswith("lsb-"):
            info.name = f"lsb-{info.name}"
        if "lsb" not in info.dependencies:
            info.dependencies.append("lsb")
        super().sanitize_info()
