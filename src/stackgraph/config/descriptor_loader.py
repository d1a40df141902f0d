"""
stack.ini descriptor parser.

This module reads a build descriptor from an INI file and turns it into an
immutable PackageDescriptor.

Example stack.ini:
    [package]
    name = GNOME
    c_language_standard = gnu17

    [target:GLibConf]
    path = Sources/GLibConf
    public_headers_path = .

    [target:GLib]
    path = Sources/GLib
    dependencies = GLibConf
    sources =
        gio
        glib
    exclude = glib/tests
    public_headers_path = .
    header_search_paths = gio, glib

    [product:GLib]
    targets = GLib

    [variant:5.9]
    name = current
    products = GLib
    platforms =
        macOS 14
        iOS 17
    exclude.GLib = tests
"""

import configparser
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..errors import DescriptorParseError, DuplicateTargetError
from .descriptor import (
    CSettings,
    PackageDescriptor,
    PlatformConstraint,
    Product,
    Target,
    VariantConfig,
    is_relative_pattern,
)
from .versions import parse_version

DEFAULT_DESCRIPTOR_NAME = "stack.ini"


def split_list(value: Optional[str]) -> Tuple[str, ...]:
    """Split a multi-line or comma-separated value into its items.

    Example:
        For sources =
                gio, gvdb
                glib
        Returns: ('gio', 'gvdb', 'glib')
    """
    if not value:
        return ()

    items = []
    for line in value.split("\n"):
        for item in line.split(","):
            item = item.strip()
            if item:
                items.append(item)
    return tuple(items)


def split_flags(value: Optional[str]) -> Tuple[str, ...]:
    """Split a compiler flag value on whitespace and newlines only.

    Commas belong to the flags themselves (-Wl,-rpath,/opt/lib or
    VERSION_LIST=1,2).

    Example:
        For unsafe_flags = -Wl,-rpath,/opt/lib -fno-common
        Returns: ('-Wl,-rpath,/opt/lib', '-fno-common')
    """
    if not value:
        return ()
    return tuple(value.split())


class DescriptorLoader:
    """
    Parser for stack.ini descriptor files.

    Usage:
        loader = DescriptorLoader(Path("stack.ini"))
        descriptor = loader.load()
    """

    REQUIRED_PACKAGE_FIELDS = {"name"}
    REQUIRED_TARGET_FIELDS = {"path"}
    REQUIRED_PRODUCT_FIELDS = {"targets"}
    REQUIRED_VARIANT_FIELDS = {"products"}

    def __init__(self, ini_path: Path):
        """
        Initialize the loader with a descriptor file.

        Args:
            ini_path: Path to the stack.ini file

        Raises:
            DescriptorParseError: If the file doesn't exist or cannot be parsed
            DuplicateTargetError: If a [target:<name>] section appears twice
        """
        self.ini_path = Path(ini_path)

        if not self.ini_path.exists():
            raise DescriptorParseError(f"Descriptor file not found: {ini_path}")

        # Dotted keys such as exclude.GLib keep their case
        self.config = configparser.ConfigParser(
            allow_no_value=True, interpolation=configparser.ExtendedInterpolation()
        )
        self.config.optionxform = str  # type: ignore[assignment,method-assign]

        try:
            self.config.read(self.ini_path, encoding="utf-8")
        except configparser.DuplicateSectionError as e:
            if e.section.startswith("target:"):
                raise DuplicateTargetError(e.section.split(":", 1)[1].strip()) from e
            raise DescriptorParseError(f"Failed to parse {ini_path}: {e}") from e
        except configparser.Error as e:
            raise DescriptorParseError(f"Failed to parse {ini_path}: {e}") from e

    def load(self) -> PackageDescriptor:
        """
        Build the PackageDescriptor described by the file.

        Target, product and variant sections keep their declaration order.
        Duplicate target sections are detected while reading the file and
        raise DuplicateTargetError from __init__.

        Returns:
            PackageDescriptor instance

        Raises:
            DescriptorParseError: If a section is missing required fields
        """
        package = self._section("package", self.REQUIRED_PACKAGE_FIELDS)

        targets = [
            self._parse_target(name) for name in self._names_with_prefix("target")
        ]
        products = [
            self._parse_product(name) for name in self._names_with_prefix("product")
        ]
        variants = [
            self._parse_variant(key) for key in self._names_with_prefix("variant")
        ]

        return PackageDescriptor(
            name=package["name"],
            targets=tuple(targets),
            products=tuple(products),
            c_language_standard=package.get("c_language_standard") or None,
            cxx_language_standard=package.get("cxx_language_standard") or None,
            variants=tuple(variants),
        )

    def _names_with_prefix(self, prefix: str) -> List[str]:
        names = []
        for section in self.config.sections():
            if section.startswith(f"{prefix}:"):
                names.append(section.split(":", 1)[1].strip())
        return names

    def _section(self, section: str, required: set) -> Dict[str, str]:
        if section not in self.config:
            raise DescriptorParseError(
                f"{self.ini_path}: missing required section [{section}]"
            )

        try:
            values = {key: (value or "").strip() for key, value in self.config[section].items()}
        except configparser.Error as e:
            raise DescriptorParseError(
                f"{self.ini_path}: failed to read [{section}]: {e}"
            ) from e

        missing_fields = required - {k for k, v in values.items() if v}
        if missing_fields:
            raise DescriptorParseError(
                f"{self.ini_path}: [{section}] is missing required fields: "
                + f"{', '.join(sorted(missing_fields))}"
            )
        return values

    def _parse_target(self, name: str) -> Target:
        section = f"target:{name}"
        values = self._section(section, self.REQUIRED_TARGET_FIELDS)

        return Target(
            name=name,
            path=values["path"],
            dependencies=split_list(values.get("dependencies")),
            sources=split_list(values.get("sources")),
            exclude=self._relative_patterns(section, values.get("exclude")),
            public_headers_path=values.get("public_headers_path") or None,
            c_settings=CSettings(
                header_search_paths=split_list(values.get("header_search_paths")),
                defines=split_flags(values.get("defines")),
                unsafe_flags=split_flags(values.get("unsafe_flags")),
            ),
        )

    def _relative_patterns(self, section: str, value: Optional[str]) -> Tuple[str, ...]:
        patterns = split_list(value)
        for pattern in patterns:
            if not is_relative_pattern(pattern):
                raise DescriptorParseError(
                    f"{self.ini_path}: [{section}] exclusion pattern '{pattern}' "
                    + "must be relative to the target path"
                )
        return patterns

    def _parse_product(self, name: str) -> Product:
        values = self._section(f"product:{name}", self.REQUIRED_PRODUCT_FIELDS)
        return Product(name=name, targets=split_list(values["targets"]))

    def _parse_variant(self, key: str) -> VariantConfig:
        section = f"variant:{key}"
        values = self._section(section, self.REQUIRED_VARIANT_FIELDS)

        try:
            parse_version(key)
        except ValueError as e:
            raise DescriptorParseError(
                f"{self.ini_path}: [{section}] must be keyed by a tools version"
            ) from e

        platforms = []
        for line in values.get("platforms", "").split("\n"):
            line = line.strip()
            if not line:
                continue
            parts = line.split()
            if len(parts) != 2:
                raise DescriptorParseError(
                    f"{self.ini_path}: [{section}] platform entry must be "
                    + f"'<family> <minimum version>', got '{line}'"
                )
            try:
                parse_version(parts[1])
            except ValueError as e:
                raise DescriptorParseError(
                    f"{self.ini_path}: [{section}] invalid minimum version '{parts[1]}'"
                ) from e
            platforms.append(PlatformConstraint(family=parts[0], minimum=parts[1]))

        extra_exclusions = []
        for option, value in values.items():
            if option.startswith("exclude."):
                target = option.split(".", 1)[1]
                extra_exclusions.append((target, self._relative_patterns(section, value)))

        return VariantConfig(
            name=values.get("name") or key,
            min_tools_version=key,
            products=split_list(values["products"]),
            platforms=tuple(platforms),
            extra_exclusions=tuple(extra_exclusions),
        )


def load_descriptor(project_dir: Path, descriptor_path: Optional[Path] = None) -> Optional[PackageDescriptor]:
    """
    Load the descriptor for a project.

    Args:
        project_dir: Project directory (package root)
        descriptor_path: Explicit descriptor file (optional)

    Returns:
        PackageDescriptor, or None if no descriptor file is present and none
        was requested explicitly

    Raises:
        DescriptorParseError: If an explicit descriptor file is missing or invalid
    """
    if descriptor_path is not None:
        return DescriptorLoader(descriptor_path).load()

    default_path = Path(project_dir) / DEFAULT_DESCRIPTOR_NAME
    if default_path.exists():
        return DescriptorLoader(default_path).load()
    return None
