"""Tests for the built-in GNOME stack descriptor."""

from stackgraph.config import gnome_descriptor
from stackgraph.config.gnome_stack import (
    CURRENT_VARIANT,
    GLIB_SOURCE_GROUPS,
    GTK_EXCLUSIONS,
    LEGACY_VARIANT,
)


class TestGnomeDescriptor:
    """Test the shape of the descriptor."""

    def test_targets(self):
        descriptor = gnome_descriptor()

        assert descriptor.name == "GNOME"
        assert descriptor.target_names() == ("GLibConf", "GLib", "Gtk")
        assert descriptor.c_language_standard == "gnu17"

    def test_dependency_chain(self):
        targets = gnome_descriptor().targets_by_name()

        assert targets["GLibConf"].dependencies == ()
        assert targets["GLib"].dependencies == ("GLibConf",)
        assert targets["Gtk"].dependencies == ("GLib",)

    def test_glib_settings(self):
        glib = gnome_descriptor().targets_by_name()["GLib"]

        assert glib.sources == GLIB_SOURCE_GROUPS
        assert glib.c_settings.header_search_paths == GLIB_SOURCE_GROUPS
        assert glib.exclude == ("glib/tests",)
        assert glib.public_headers_path == "."

    def test_gtk_exclusions(self):
        gtk = gnome_descriptor().targets_by_name()["Gtk"]

        assert gtk.sources == ("gtk", "gdk")
        assert gtk.exclude == GTK_EXCLUSIONS
        assert len(GTK_EXCLUSIONS) == 10

    def test_products(self):
        assert gnome_descriptor().product_names() == ("GLibConf", "GLib", "Gtk")

    def test_descriptor_is_rebuilt_equal(self):
        assert gnome_descriptor() == gnome_descriptor()


class TestGnomeVariants:
    """Test the two attached variants."""

    def test_variants_attached(self):
        assert gnome_descriptor().variants == (LEGACY_VARIANT, CURRENT_VARIANT)

    def test_legacy(self):
        assert LEGACY_VARIANT.min_tools_version == "5.5"
        assert LEGACY_VARIANT.products == ("GLibConf", "GLib", "Gtk")
        assert LEGACY_VARIANT.platforms == ()
        assert LEGACY_VARIANT.exclusions_for("GLib") == ()

    def test_current(self):
        assert CURRENT_VARIANT.min_tools_version == "5.9"
        assert CURRENT_VARIANT.products == ("Gtk",)
        assert {(p.family, p.minimum) for p in CURRENT_VARIANT.platforms} == {
            ("macOS", "14"),
            ("visionOS", "1"),
            ("iOS", "17"),
            ("tvOS", "17"),
            ("watchOS", "10"),
        }
        assert CURRENT_VARIANT.exclusions_for("GLib") == ("tests",)
        assert CURRENT_VARIANT.exclusions_for("Gtk") == ()
