"""
Conversion driver.

Runs one package file through the pipeline: detect and parse the source,
apply the script and release policy, unpack the payload, then hand a clone of
the metadata to one target adapter per requested format.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from xenomorph.core.config import Config
from xenomorph.core.errors import XenomorphError
from xenomorph.models.package import Format, PackageInfo
from xenomorph.sources import open_source
from xenomorph.targets import TargetPackage, make_target

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Outcome of converting a single input file."""

    source: Path
    info: PackageInfo | None = None
    work_dir: Path | None = None
    targets: dict[Format, TargetPackage] = field(default_factory=dict)
    skipped_scripts: bool = False
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def convert_file(path: Path, formats: list[Format], config: Config) -> ConversionResult:
    """
    Convert one package into the metadata bundles of the given formats.

    Args:
        path: Source package file.
        formats: Target formats, each written into the same work directory.
        config: Run configuration.

    Returns:
        ConversionResult holding the parsed metadata, work dir and targets.

    Raises:
        XenomorphError: If the package cannot be read or converted.
    """
    source = open_source(path, config)
    info = source.info
    result = ConversionResult(source=path, info=info)

    if not info.use_scripts:
        scripts = info.active_scripts()
        if scripts and not config.use_scripts:
            names = ", ".join(script.name_for(info.original_format) for script in scripts)
            logger.warning(f"Skipping conversion of scripts in package {info.name}: {names}")
            logger.warning("Use the --scripts parameter to include the scripts.")
            result.skipped_scripts = True
        info.use_scripts = config.use_scripts

    if not config.keep_version:
        source.increment_release(config.bump)

    result.work_dir = source.unpack()
    logger.info(f"Unpacked {path} into {result.work_dir}")

    for fmt in formats:
        target = make_target(fmt, info.clone(), result.work_dir, config)
        target.generate()
        result.targets[fmt] = target
        logger.info(f"Generated {fmt} metadata in {result.work_dir}")

    return result


def convert_files(
    paths: list[Path],
    formats: list[Format],
    config: Config,
    continue_on_error: bool = True,
) -> list[ConversionResult]:
    """
    Convert several packages, one after the other.

    A failure is logged and recorded in that file's result; with
    continue_on_error the remaining files are still converted.
    """
    results = []
    for path in paths:
        try:
            results.append(convert_file(path, formats, config))
        except (XenomorphError, OSError) as e:
            logger.error(f"Failed to convert {path}: {e}")
            results.append(ConversionResult(source=path, error=e))
            if not continue_on_error:
                break
    return results
