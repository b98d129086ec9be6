"""
xenomorph CLI - Convert packages between distribution formats.

Usage:
    xenomorph convert --to-rpm foo_1.0-1_amd64.deb
    xenomorph convert -d -t --scripts foo-1.0-1.x86_64.rpm
    xenomorph inspect foo_1.0-1_amd64.deb
"""

import logging
import os
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def _configure_logging(verbose: bool, veryverbose: bool):
    if veryverbose:
        log_level = logging.DEBUG
    elif verbose:
        log_level = logging.INFO
    else:
        log_level = logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@click.group()
@click.version_option(package_name="xenomorph")
def cli():
    """xenomorph - Convert between deb, rpm, lsb, Solaris pkg and Slackware tgz packages."""
    pass


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--to-deb", "-d", is_flag=True, help="Generate a Debian deb package (default).")
@click.option("--to-rpm", "-r", is_flag=True, help="Generate a Red Hat rpm package.")
@click.option("--to-lsb", "-l", is_flag=True, help="Generate a LSB package.")
@click.option("--to-tgz", "-t", is_flag=True, help="Generate a Slackware tgz package.")
@click.option("--to-pkg", "-p", is_flag=True, help="Generate a Solaris pkg package.")
@click.option("--scripts", "-c", "use_scripts", is_flag=True, help="Include scripts in package.")
@click.option("--target", "target_arch", type=str, default=None, help="Set architecture of the generated package.")
@click.option("--keep-version", "-k", is_flag=True, help="Do not change version of generated package.")
@click.option("--bump", type=click.IntRange(min=0), default=1, show_default=True, help="Increment package release by this number.")
@click.option("--verbose", "-v", is_flag=True, help="Display each command xenomorph runs.")
@click.option("--veryverbose", is_flag=True, help="Be verbose, and also display output of run commands.")
@click.option(
    "--patch",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Specify patch file to use instead of automatically looking for patch.",
)
@click.option("--nopatch", is_flag=True, help="Do not use patches.")
@click.option("--anypatch", is_flag=True, help="Use even old version of patches.")
@click.option("--fixperms", is_flag=True, help="Munge/fix permissions and owners.")
@click.option("--description", "tgz_description", type=str, default=None, help="Specify package description (tgz sources).")
@click.option("--tgz-version", type=str, default=None, help="Specify package version (tgz sources).")
def convert(
    files,
    to_deb,
    to_rpm,
    to_lsb,
    to_tgz,
    to_pkg,
    use_scripts,
    target_arch,
    keep_version,
    bump,
    verbose,
    veryverbose,
    patch,
    nopatch,
    anypatch,
    fixperms,
    tgz_description,
    tgz_version,
):
    """Prepare package FILES for conversion to other formats."""
    from xenomorph.core.config import Config, Verbosity
    from xenomorph.core.converter import convert_files
    from xenomorph.models.package import Format

    if patch is not None and nopatch:
        raise click.UsageError("The options --nopatch and --patch cannot be used together.")

    _configure_logging(verbose, veryverbose)

    formats = [
        fmt
        for fmt, wanted in (
            (Format.DEB, to_deb),
            (Format.RPM, to_rpm),
            (Format.LSB, to_lsb),
            (Format.TGZ, to_tgz),
            (Format.PKG, to_pkg),
        )
        if wanted
    ] or [Format.DEB]

    if veryverbose:
        verbosity = Verbosity.VERY_VERBOSE
    elif verbose:
        verbosity = Verbosity.VERBOSE
    else:
        verbosity = Verbosity.NORMAL

    config = Config(
        verbosity=verbosity,
        use_scripts=use_scripts,
        keep_version=keep_version,
        bump=bump,
        target_arch=target_arch,
        patch=patch,
        nopatch=nopatch,
        anypatch=anypatch,
        fixperms=fixperms,
        tgz_description=tgz_description,
        tgz_version=tgz_version,
    )

    if os.geteuid() != 0:
        err_console.print("Warning: xenomorph is not running as root!")
        err_console.print("Ownership of files in the generated packages will probably be messed up.")

    results = convert_files(list(files), formats, config)

    failed = 0
    for result in results:
        if not result.ok:
            failed += 1
            err_console.print(f"[red]Error:[/red] {escape(f'{result.source}: {result.error}')}")
            continue
        console.print(f"Directory {result.work_dir} prepared.", soft_wrap=True)

    if failed:
        raise click.exceptions.Exit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--target", "target_arch", type=str, default=None, help="Override the package architecture.")
@click.option("--verbose", "-v", is_flag=True, help="Display each command xenomorph runs.")
def inspect(file, target_arch, verbose):
    """Show the metadata xenomorph reads from FILE."""
    from xenomorph.core.config import Config, Verbosity
    from xenomorph.core.errors import XenomorphError
    from xenomorph.sources import open_source

    _configure_logging(verbose, False)
    config = Config(
        verbosity=Verbosity.VERBOSE if verbose else Verbosity.NORMAL,
        target_arch=target_arch,
    )

    try:
        info = open_source(file, config).info
    except XenomorphError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.exceptions.Exit(1)

    table = Table(title=str(file.name), show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Format", str(info.original_format))
    table.add_row("Name", info.name)
    table.add_row("Version", info.version)
    table.add_row("Release", info.release)
    table.add_row("Architecture", info.arch)
    table.add_row("Maintainer", info.maintainer)
    table.add_row("Depends", ", ".join(info.dependencies))
    table.add_row("Group", info.group)
    table.add_row("Summary", info.summary)
    table.add_row("Distribution", info.distribution)
    table.add_row("Copyright", info.copyright)
    table.add_row("Scripts", ", ".join(s.name_for(info.original_format) for s in info.active_scripts()))
    table.add_row("Conffiles", "\n".join(info.conffiles))
    table.add_row("Files", str(len(info.files)))
    console.print(table)


if __name__ == "__main__":
    cli()
