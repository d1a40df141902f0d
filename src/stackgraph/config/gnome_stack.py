"""
Built-in descriptor for the GNOME stack (GLibConf, GLib, Gtk).

The two descriptor variants share one target layout. They differ only in the
fields carried by their VariantConfig:

    legacy  (tools 5.5): products GLibConf, GLib, Gtk; any platform
    current (tools 5.9): product Gtk only; minimum platform versions;
                         GLib additionally excludes its top-level tests/
"""

from .descriptor import (
    CSettings,
    PackageDescriptor,
    PlatformConstraint,
    Product,
    Target,
    VariantConfig,
)

GLIB_SOURCE_GROUPS = ("gio", "gvdb", "proxy-libintl", "gmodule", "glib")

GTK_SOURCE_GROUPS = ("gtk", "gdk")

# Non-source inputs living inside the Gtk source groups
GTK_EXCLUSIONS = (
    "gtk/theme",
    "gtk/ui",
    "gtk/timsort/COPYING",
    "gtk/timsort/README.md",
    "gtk/text-input-unstable-v3.xml",
    "gtk/print/ui/gtkpagesetupunixdialog.ui",
    "gtk/print/ui/gtkprintunixdialog.ui",
    "gtk/print/meson.build",
    "gtk/roaring/COPYING",
    "gtk/roaring/README.md",
)

LEGACY_VARIANT = VariantConfig(
    name="legacy",
    min_tools_version="5.5",
    products=("GLibConf", "GLib", "Gtk"),
)

CURRENT_VARIANT = VariantConfig(
    name="current",
    min_tools_version="5.9",
    products=("Gtk",),
    platforms=(
        PlatformConstraint("macOS", "14"),
        PlatformConstraint("visionOS", "1"),
        PlatformConstraint("iOS", "17"),
        PlatformConstraint("tvOS", "17"),
        PlatformConstraint("watchOS", "10"),
    ),
    extra_exclusions=(("GLib", ("tests",)),),
)


def gnome_descriptor() -> PackageDescriptor:
    """Return the GNOME stack descriptor with both variants attached."""
    glib_conf = Target(
        name="GLibConf",
        path="Sources/GLibConf",
        public_headers_path=".",
    )
    glib = Target(
        name="GLib",
        path="Sources/GLib",
        dependencies=("GLibConf",),
        sources=GLIB_SOURCE_GROUPS,
        exclude=("glib/tests",),
        public_headers_path=".",
        c_settings=CSettings(header_search_paths=GLIB_SOURCE_GROUPS),
    )
    gtk = Target(
        name="Gtk",
        path="Sources/Gtk",
        dependencies=("GLib",),
        sources=GTK_SOURCE_GROUPS,
        exclude=GTK_EXCLUSIONS,
        public_headers_path=".",
    )

    return PackageDescriptor(
        name="GNOME",
        targets=(glib_conf, glib, gtk),
        products=(
            Product(name="GLibConf", targets=("GLibConf",)),
            Product(name="GLib", targets=("GLib",)),
            Product(name="Gtk", targets=("Gtk",)),
        ),
        c_language_standard="gnu17",
        variants=(LEGACY_VARIANT, CURRENT_VARIANT),
    )
