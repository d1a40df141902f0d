"""Shared fixtures: a miniature on-disk copy of the GNOME source layout."""

from pathlib import Path

import pytest

GNOME_FILES = {
    # GLibConf
    "Sources/GLibConf/glibconfig.h": "#define GLIB_SIZEOF_VOID_P 8\n",
    "Sources/GLibConf/gmoduleconf.h": "",
    # GLib source groups
    "Sources/GLib/glib/glib.h": '#include <glibconfig.h>\n#include "gstring.h"\n',
    "Sources/GLib/glib/gstring.h": "",
    "Sources/GLib/glib/gstring.c": '#include "gstring.h"\n#include <string.h>\n',
    "Sources/GLib/glib/gatomic.c": '#include "glib.h"\n',
    "Sources/GLib/glib/tests/atomic.c": '#include "glib.h"\n',
    "Sources/GLib/glib/tests/queue.c": '#include "glib.h"\n',
    "Sources/GLib/gio/gio.h": "#include <glib/glib.h>\n",
    "Sources/GLib/gio/gioenumtypes.c": '#include "gio.h"\n',
    "Sources/GLib/gio/gpowerprofilemonitorportal.h": "",
    "Sources/GLib/gio/tests/gtesttlsbackend.c": '#include "gio.h"\n',
    "Sources/GLib/gvdb/gvdb-reader.c": '#include <glib.h>\n',
    "Sources/GLib/proxy-libintl/libintl.c": "",
    "Sources/GLib/gmodule/gmodule.c": '#include <gmoduleconf.h>\n#include "glib.h"\n',
    "Sources/GLib/gobject/glib-enumtypes.c": "",
    "Sources/GLib/tests/meson.c": "",
    # Gtk source groups
    "Sources/Gtk/gtk/gtk.h": "#include <gio/gio.h>\n",
    "Sources/Gtk/gtk/gtkwidget.c": '#include "gtk.h"\n#include <gdk/gdkconfig.h>\n',
    "Sources/Gtk/gtk/gtkprogresstrackerprivate.h": "",
    "Sources/Gtk/gtk/inspector/init.c": '#include "../gtk.h"\n',
    "Sources/Gtk/gtk/timsort/gtktimsort.c": "",
    "Sources/Gtk/gtk/timsort/COPYING": "license\n",
    "Sources/Gtk/gtk/timsort/README.md": "readme\n",
    "Sources/Gtk/gtk/roaring/roaring.c": "",
    "Sources/Gtk/gtk/roaring/COPYING": "license\n",
    "Sources/Gtk/gtk/roaring/README.md": "readme\n",
    "Sources/Gtk/gtk/theme/Default/Default-light.css": "",
    "Sources/Gtk/gtk/ui/gtkfilechooserwidget.ui": "",
    "Sources/Gtk/gtk/text-input-unstable-v3.xml": "",
    "Sources/Gtk/gtk/print/gtkprintunixdialog.c": "",
    "Sources/Gtk/gtk/print/ui/gtkpagesetupunixdialog.ui": "",
    "Sources/Gtk/gtk/print/ui/gtkprintunixdialog.ui": "",
    "Sources/Gtk/gtk/print/meson.build": "",
    "Sources/Gtk/gdk/gdkconfig.h": "",
    "Sources/Gtk/gdk/loaders/gdkpng.c": '#include "../gdkconfig.h"\n',
    "Sources/Gtk/gdk/macos/gdkmacosclipboard-private.h": "",
    "Sources/Gtk/gdk/wayland/gdkmonitor-wayland.c": "",
    "Sources/Gtk/gdk/x11/gdkmonitor-x11.h": "",
    "Sources/Gtk/gsk/gskdebug.c": "",
    "Sources/Gtk/modules/printbackends/gtkprintbackendcpdb.h": "",
}


def write_tree(root: Path, files: dict) -> Path:
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def gnome_package(tmp_path):
    """Create the GLibConf/GLib/Gtk layout under a temporary package root."""
    return write_tree(tmp_path / "gnome", GNOME_FILES)
