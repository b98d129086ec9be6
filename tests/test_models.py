"""Tests for the canonical package model."""

import pytest

from xenomorph.models.package import (
    FileInfo,
    Format,
    PackageInfo,
    Script,
    normalize_payload_path,
)


# ═══════════════════════════════════════════
# Format
# ═══════════════════════════════════════════


class TestFormat:
    def test_str_is_value(self):
        assert str(Format.DEB) == "deb"
        assert str(Format.LSB) == "lsb"

    def test_install_commands(self):
        assert Format.DEB.install_command == ["dpkg", "--no-force-overwrite", "-i"]
        assert Format.RPM.install_command == ["rpm", "-ivh"]
        assert Format.LSB.install_command == ["rpm", "-ivh"]
        assert Format.PKG.install_command == ["/usr/sbin/pkgadd", "-d", "."]
        assert Format.TGZ.install_command == ["/sbin/installpkg"]


# ═══════════════════════════════════════════
# Script name tables
# ═══════════════════════════════════════════


class TestScript:
    @pytest.mark.parametrize("fmt", list(Format))
    def test_round_trip(self, fmt):
        for script in Script:
            assert Script.from_name(fmt, script.name_for(fmt)) is script

    def test_deb_names(self):
        assert [s.name_for(Format.DEB) for s in Script] == ["preinst", "postinst", "prerm", "postrm"]

    def test_tgz_names(self):
        assert Script.AFTER_INSTALL.name_for(Format.TGZ) == "doinst.sh"
        assert Script.BEFORE_UNINSTALL.name_for(Format.TGZ) == "predelete.sh"

    def test_lsb_uses_rpm_names(self):
        assert Script.BEFORE_INSTALL.name_for(Format.LSB) == "%pre"
        assert Script.from_name(Format.LSB, "%postun") is Script.AFTER_UNINSTALL

    def test_unknown_name(self):
        assert Script.from_name(Format.DEB, "config") is None
        assert Script.from_name(Format.PKG, "copyright") is None

    def test_rpm_query_tags(self):
        assert Script.AFTER_INSTALL.rpm_query_tag == "%{POSTIN}"
        assert Script.BEFORE_UNINSTALL.rpm_query_tag == "%{PREUN}"


# ═══════════════════════════════════════════
# Payload paths
# ═══════════════════════════════════════════


class TestNormalizePayloadPath:
    def test_dot_slash_prefix(self):
        assert normalize_payload_path("./usr/bin/x") == "/usr/bin/x"

    def test_relative(self):
        assert normalize_payload_path("usr/bin/x") == "/usr/bin/x"

    def test_absolute_unchanged(self):
        assert normalize_payload_path("/usr/bin/x") == "/usr/bin/x"

    def test_directory_slash_dropped(self):
        assert normalize_payload_path("./usr/share/") == "/usr/share"

    def test_root(self):
        assert normalize_payload_path("./") == "/"
        assert normalize_payload_path(".") == "/"


# ═══════════════════════════════════════════
# PackageInfo
# ═══════════════════════════════════════════


class TestPackageInfo:
    def test_add_file_normalizes(self):
        info = PackageInfo()
        assert info.add_file("./etc/foo.conf") == "/etc/foo.conf"
        assert info.files == ["/etc/foo.conf"]

    def test_conffiles_are_unique(self):
        info = PackageInfo()
        info.add_conffile("/etc/foo.conf")
        info.add_conffile("etc/foo.conf")
        assert info.conffiles == ["/etc/foo.conf"]

    def test_workdir_name(self):
        info = PackageInfo(name="foo", version="1.2")
        assert info.workdir_name == "foo-1.2"

    def test_clone_is_deep(self):
        info = PackageInfo(name="foo", dependencies=["libc6"])
        info.file_info["/usr/bin/foo"] = FileInfo(owner="bob")
        copy = info.clone()

        copy.name = "lsb-foo"
        copy.dependencies.append("lsb")
        copy.file_info["/usr/bin/foo"].owner = "alice"

        assert info.name == "foo"
        assert info.dependencies == ["libc6"]
        assert info.file_info["/usr/bin/foo"].owner == "bob"

    def test_active_scripts_skip_blank_and_keep_order(self):
        info = PackageInfo()
        info.scripts[Script.AFTER_UNINSTALL] = "#!/bin/sh\nexit 0\n"
        info.scripts[Script.BEFORE_INSTALL] = "   \n"
        info.scripts[Script.AFTER_INSTALL] = "#!/bin/sh\n"

        assert list(info.active_scripts()) == [Script.AFTER_INSTALL, Script.AFTER_UNINSTALL]
