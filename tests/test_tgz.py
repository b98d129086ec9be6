"""Tests for the Slackware tgz source and target adapters."""

import gzip
import os

import pytest

from conftest import build_tar
from xenomorph.core.config import Config
from xenomorph.core.errors import MalformedArchive
from xenomorph.models.package import FileInfo, Format, PackageInfo, Script
from xenomorph.sources.tgz import TgzSource, strip_suffix
from xenomorph.targets.tgz import TgzTarget


@pytest.fixture
def make_tgz(tmp_path):
    def _make(entries=None, filename="hello-2.10.tgz", modes=None):
        if entries is None:
            entries = {
                "./": None,
                "./usr/": None,
                "./usr/bin/": None,
                "./usr/bin/hello": b"#!/bin/sh\necho hello\n",
                "./etc/": None,
                "./etc/hello.conf": b"greeting=hi\n",
                "./etc/rc.hello": b"#!/bin/sh\n",
                "./install/": None,
                "./install/doinst.sh": b"#!/bin/sh\nldconfig\n",
                "./install/slack-desc": b"hello: greets\n",
            }
        path = tmp_path / filename
        path.write_bytes(gzip.compress(build_tar(entries, {"./etc/rc.hello": 0o755, **(modes or {})})))
        return path

    return _make


# ═══════════════════════════════════════════
# Source
# ═══════════════════════════════════════════


class TestStripSuffix:
    @pytest.mark.parametrize(
        "filename, base",
        [
            ("hello-2.10.tgz", "hello-2.10"),
            ("hello-2.10.tar.gz", "hello-2.10"),
            ("hello-2.10.TAR.BZ2", "hello-2.10"),
            ("hello-2.10.taz", "hello-2.10"),
        ],
    )
    def test_strip(self, filename, base):
        assert strip_suffix(filename) == base


class TestTgzSource:
    def test_metadata(self, make_tgz, config):
        info = TgzSource(make_tgz(), config).info

        assert (info.name, info.version, info.release) == ("hello", "2.10", "1")
        assert info.arch == "all"
        assert info.summary == "Converted tgz package"
        assert info.description == "Converted tgz package"
        assert info.copyright == "unknown"
        assert info.distribution == "Slackware/tarball"
        assert info.original_format is Format.TGZ
        assert "hello-2.10.tgz" in info.binary_info

    def test_files_exclude_install_dir(self, make_tgz, config):
        info = TgzSource(make_tgz(), config).info
        assert info.files == [
            "/usr",
            "/usr/bin",
            "/usr/bin/hello",
            "/etc",
            "/etc/hello.conf",
            "/etc/rc.hello",
        ]

    def test_conffiles_are_plain_etc_files(self, make_tgz, config):
        info = TgzSource(make_tgz(), config).info
        assert info.conffiles == ["/etc/hello.conf"]

    def test_scripts_from_install_dir(self, make_tgz, config):
        info = TgzSource(make_tgz(), config).info
        assert info.scripts == {Script.AFTER_INSTALL: "#!/bin/sh\nldconfig\n"}

    def test_name_without_version(self, make_tgz, config):
        info = TgzSource(make_tgz(filename="hello.tar.gz"), config).info
        assert (info.name, info.version) == ("hello", "1")

    def test_config_overrides(self, make_tgz):
        config = Config(tgz_description="Greets people", tgz_version="3.0", target_arch="i686", patch_dirs=())
        info = TgzSource(make_tgz(), config).info
        assert info.description == "Greets people"
        assert info.version == "3.0"
        assert info.arch == "i386"

    def test_not_a_tarball(self, tmp_path, config):
        path = tmp_path / "broken-1.0.tgz"
        path.write_bytes(b"this is not a tarball at all")
        with pytest.raises(MalformedArchive):
            TgzSource(path, config)

    def test_truncated_tarball(self, tmp_path, config):
        data = gzip.compress(build_tar({"./blob": os.urandom(65536), "./after": b"x"}))
        path = tmp_path / "broken-1.0.tgz"
        path.write_bytes(data[: len(data) // 3])
        with pytest.raises(MalformedArchive, match="Cannot read tarball"):
            TgzSource(path, config)

    def test_detect(self, tmp_path):
        assert TgzSource.detect(tmp_path / "hello-2.10.tgz")
        assert TgzSource.detect(tmp_path / "hello-2.10.tar.bz2")
        assert not TgzSource.detect(tmp_path / "hello-2.10.tar.xz")
        assert not TgzSource.detect(tmp_path / "hello-2.10.rpm")

    def test_increment_release(self, make_tgz, config):
        source = TgzSource(make_tgz(), config)
        source.increment_release(2)
        assert source.info.release == "3"


class TestTgzUnpack:
    def test_unpack_drops_install_dir(self, make_tgz, config, workspace):
        work_dir = TgzSource(make_tgz(), config).unpack()

        assert work_dir.name == "hello-2.10"
        assert sorted(p.name for p in work_dir.iterdir()) == ["etc", "usr"]
        assert (work_dir / "usr/bin/hello").read_text() == "#!/bin/sh\necho hello\n"
        assert os.stat(work_dir / "etc/rc.hello").st_mode & 0o777 == 0o755

    def test_unpack_rejects_escaping_paths(self, make_tgz, config, workspace):
        source = TgzSource(make_tgz({"./../../evil": b"boom"}), config)
        with pytest.raises(MalformedArchive):
            source.unpack()


# ═══════════════════════════════════════════
# Target
# ═══════════════════════════════════════════


class TestTgzTarget:
    def test_scripts_written_under_slackware_names(self, tmp_path, config):
        info = PackageInfo(
            name="hello",
            use_scripts=True,
            scripts={
                Script.BEFORE_INSTALL: "#!/bin/sh\necho pre\n",
                Script.AFTER_UNINSTALL: "#!/bin/sh\necho gone\n",
            },
        )
        TgzTarget(info, tmp_path, config).generate()

        assert sorted(p.name for p in (tmp_path / "install").iterdir()) == ["delete.sh", "predoinst.sh"]
        assert (tmp_path / "install/predoinst.sh").read_text() == "#!/bin/sh\necho pre\n"
        assert os.access(tmp_path / "install/delete.sh", os.X_OK)

    def test_nothing_to_write(self, tmp_path, config):
        info = PackageInfo(name="hello", scripts={Script.AFTER_INSTALL: "#!/bin/sh\n"})
        TgzTarget(info, tmp_path, config).generate()
        assert not (tmp_path / "install").exists()

    def test_ownership_fixup_without_scripts(self, tmp_path, config):
        info = PackageInfo(name="hello", file_info={"/usr/bin/hello": FileInfo(owner="games", mode=0o2755)})
        TgzTarget(info, tmp_path, config).generate()

        doinst = (tmp_path / "install/doinst.sh").read_text()
        assert doinst.startswith("#!/bin/sh\n")
        assert "chmod '2755' '/usr/bin/hello'" in doinst

    def test_generate_twice(self, tmp_path, config):
        target = TgzTarget(PackageInfo(name="hello"), tmp_path, config)
        target.generate()
        with pytest.raises(RuntimeError):
            target.generate()
