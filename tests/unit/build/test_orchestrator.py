"""
Unit tests for StackResolver.

Tests the complete resolution process including:
- Variant selection and platform checks
- Graph validation and build order
- Source-set resolution of the GNOME layout
- Header visibility and include paths
- Build plan and product generation
- State tracking on success and failure
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from stackgraph.build import BuildPlan, ResolutionState, StackResolver
from stackgraph.build.source_resolver import SourceSetResolver
from stackgraph.config import PackageDescriptor, Product, Target, VariantConfig, gnome_descriptor
from stackgraph.errors import (
    CycleDetectedError,
    DuplicateTargetError,
    InvalidVariantError,
    InvisibleHeaderReferenceError,
    MissingSourceRootError,
    PlatformUnsupportedError,
    UnresolvedReferenceError,
)

ANY_VARIANT = (VariantConfig(name="only", min_tools_version="1.0", products=()),)


def resolve(root, descriptor=None, tools_version="5.9", platform="macOS", version="14.0", **kwargs):
    resolver = StackResolver(root)
    plan = resolver.resolve(
        descriptor or gnome_descriptor(), tools_version, platform, version, **kwargs
    )
    return resolver, plan


class TestGnomeResolution:
    """Resolve the built-in descriptor against the miniature GNOME tree."""

    def test_current_variant(self, gnome_package):
        resolver, plan = resolve(gnome_package)

        assert isinstance(plan, BuildPlan)
        assert resolver.state == ResolutionState.READY
        assert plan.variant.name == "current"
        assert plan.order == ("GLibConf", "GLib", "Gtk")
        assert [p.name for p in plan.products] == ["Gtk"]
        assert plan.products[0].targets == ("GLibConf", "GLib", "Gtk")

    def test_legacy_variant(self, gnome_package):
        _, plan = resolve(gnome_package, tools_version="5.5", platform="macOS", version="10.15")

        assert plan.variant.name == "legacy"
        assert [p.name for p in plan.products] == ["GLibConf", "GLib", "Gtk"]
        assert plan.products[0].targets == ("GLibConf",)

    def test_glib_sources(self, gnome_package):
        _, plan = resolve(gnome_package)
        files = [f.as_posix() for f in plan.target_plan("GLib").source_set.files]

        assert "glib/gstring.c" in files
        assert "gio/gioenumtypes.c" in files
        assert "gvdb/gvdb-reader.c" in files
        assert "proxy-libintl/libintl.c" in files
        assert "gmodule/gmodule.c" in files
        # Not a declared source group
        assert "gobject/glib-enumtypes.c" not in files
        assert "tests/meson.c" not in files
        # Excluded
        assert not any(f.startswith("glib/tests/") for f in files)
        # gio/tests is not excluded by either variant
        assert "gio/tests/gtesttlsbackend.c" in files

    def test_gtk_exclusions(self, gnome_package):
        _, plan = resolve(gnome_package)
        files = [f.as_posix() for f in plan.target_plan("Gtk").source_set.files]

        for excluded in (
            "gtk/timsort/COPYING",
            "gtk/timsort/README.md",
            "gtk/roaring/COPYING",
            "gtk/roaring/README.md",
            "gtk/text-input-unstable-v3.xml",
            "gtk/print/meson.build",
            "gtk/print/ui/gtkprintunixdialog.ui",
            "gtk/print/ui/gtkpagesetupunixdialog.ui",
            "gtk/theme/Default/Default-light.css",
            "gtk/ui/gtkfilechooserwidget.ui",
        ):
            assert excluded not in files
        assert "gtk/timsort/gtktimsort.c" in files
        assert "gtk/roaring/roaring.c" in files
        assert "gdk/loaders/gdkpng.c" in files
        # Outside the gtk/gdk source groups
        assert "gsk/gskdebug.c" not in files

    def test_include_dirs(self, gnome_package):
        _, plan = resolve(gnome_package)
        sources = gnome_package / "Sources"

        glib_dirs = plan.target_plan("GLib").include_dirs
        assert glib_dirs[0] == sources / "GLib"
        assert sources / "GLib" / "gio" in glib_dirs
        assert glib_dirs[-1] == sources / "GLibConf"

        gtk_dirs = plan.target_plan("Gtk").include_dirs
        assert gtk_dirs == (sources / "Gtk", sources / "GLib", sources / "GLibConf")
        # GLib's private search paths never reach Gtk
        assert sources / "GLib" / "gio" not in gtk_dirs

    def test_flags(self, gnome_package):
        _, plan = resolve(gnome_package)
        flags = plan.target_plan("GLib").c_flags

        assert flags[0] == "-std=gnu17"
        assert f"-I{(gnome_package / 'Sources' / 'GLib' / 'glib').as_posix()}" in flags

    def test_verify_headers_passes(self, gnome_package):
        resolver, _ = resolve(gnome_package, verify_headers=True)
        assert resolver.state == ResolutionState.READY

    def test_current_variant_glib_tests_exclusion_is_not_stale(self, gnome_package):
        _, plan = resolve(gnome_package)
        assert plan.target_plan("GLib").source_set.unmatched_exclusions == ()


class TestFailures:
    """Each failure stops resolution and records its terminal state."""

    def test_platform_rejected_before_sources(self, gnome_package):
        resolver = StackResolver(gnome_package)

        with patch.object(SourceSetResolver, "resolve_all") as mock_resolve:
            with pytest.raises(PlatformUnsupportedError):
                resolver.resolve(gnome_descriptor(), "5.9", "iOS", "16.0")

        mock_resolve.assert_not_called()
        assert resolver.state == ResolutionState.PLATFORM_UNSUPPORTED

    def test_legacy_skips_platform_constraints(self, gnome_package):
        resolver, _ = resolve(gnome_package, tools_version="5.5", platform="iOS", version="12.0")
        assert resolver.state == ResolutionState.READY

    def test_invalid_variant(self, gnome_package):
        resolver = StackResolver(gnome_package)

        with pytest.raises(InvalidVariantError):
            resolver.resolve(gnome_descriptor(), "5.0", "macOS", "14")

        assert resolver.state == ResolutionState.INVALID_VARIANT
        assert resolver.state.is_failure

    def test_cycle(self, tmp_path):
        descriptor = PackageDescriptor(
            name="Cyclic",
            targets=(
                Target(name="A", path="A", dependencies=("C",)),
                Target(name="B", path="B", dependencies=("A",)),
                Target(name="C", path="C", dependencies=("B",)),
            ),
            variants=ANY_VARIANT,
        )
        resolver = StackResolver(tmp_path)

        with pytest.raises(CycleDetectedError) as exc_info:
            resolver.resolve(descriptor, "1.0", "linux", "6")

        assert exc_info.value.cycle == ["A", "C", "B"]
        assert resolver.state == ResolutionState.CYCLE_DETECTED

    def test_unresolved_reference(self, tmp_path):
        descriptor = PackageDescriptor(
            name="Broken",
            targets=(Target(name="A", path="A", dependencies=("Nope",)),),
            variants=ANY_VARIANT,
        )
        resolver = StackResolver(tmp_path)

        with pytest.raises(UnresolvedReferenceError):
            resolver.resolve(descriptor, "1.0", "linux", "6")

        assert resolver.state == ResolutionState.UNRESOLVED_REFERENCE

    def test_duplicate_target(self, tmp_path):
        descriptor = PackageDescriptor(
            name="Dup",
            targets=(Target(name="A", path="A"), Target(name="A", path="A2")),
            variants=ANY_VARIANT,
        )
        resolver = StackResolver(tmp_path)

        with pytest.raises(DuplicateTargetError):
            resolver.resolve(descriptor, "1.0", "linux", "6")

        assert resolver.state == ResolutionState.DUPLICATE_TARGET

    def test_missing_source_root(self, gnome_package):
        (gnome_package / "Sources" / "GLib" / "gvdb" / "gvdb-reader.c").unlink()
        (gnome_package / "Sources" / "GLib" / "gvdb").rmdir()
        resolver = StackResolver(gnome_package)

        with pytest.raises(MissingSourceRootError) as exc_info:
            resolver.resolve(gnome_descriptor(), "5.9", "macOS", "14")

        assert exc_info.value.target == "GLib"
        assert resolver.state == ResolutionState.MISSING_SOURCE_ROOT

    def test_invisible_header(self, tmp_path):
        for name, content in {
            "Lib/include/lib.h": "",
            "Lib/src/hidden.h": "",
            "Lib/src/lib.c": '#include "hidden.h"\n',
            "App/main.c": "#include <lib.h>\n#include <src/hidden.h>\n",
        }.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)

        descriptor = PackageDescriptor(
            name="Vis",
            targets=(
                Target(name="Lib", path="Lib", public_headers_path="include"),
                Target(name="App", path="App", dependencies=("Lib",)),
            ),
            products=(Product(name="App", targets=("App",)),),
            variants=(VariantConfig(name="only", min_tools_version="1.0", products=("App",)),),
        )
        resolver = StackResolver(tmp_path)

        # Without verification the plan is still produced
        plan = resolver.resolve(descriptor, "1.0", "linux", "6")
        assert plan.order == ("Lib", "App")

        with pytest.raises(InvisibleHeaderReferenceError) as exc_info:
            resolver.resolve(descriptor, "1.0", "linux", "6", verify_headers=True)

        assert exc_info.value.include == "src/hidden.h"
        assert resolver.state == ResolutionState.INVISIBLE_HEADER


class TestValidate:
    """Test filesystem-free validation."""

    def test_validate_without_sources(self, tmp_path):
        resolver = StackResolver(tmp_path / "empty")
        graph = resolver.validate(gnome_descriptor(), "5.9")

        assert graph.order == ("GLibConf", "GLib", "Gtk")
        assert resolver.state == ResolutionState.GRAPH_VALIDATED

    def test_validate_invalid_variant(self, tmp_path):
        resolver = StackResolver(Path(tmp_path))

        with pytest.raises(InvalidVariantError):
            resolver.validate(gnome_descriptor(), "nope")

        assert resolver.state == ResolutionState.INVALID_VARIANT
