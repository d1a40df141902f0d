"""
Declarative build descriptor model.

A PackageDescriptor is the read-only description of a native software stack:
the targets that compile, the products exposed to consumers, the global
language standards and the variant configurations selected by consumer tools
version. Every object here is immutable; resolution never mutates a
descriptor, it derives new ones (see DescriptorVariantSelector.apply).

Example:
    descriptor = PackageDescriptor(
        name="Demo",
        targets=(
            Target(name="Conf", path="Sources/Conf", public_headers_path="."),
            Target(name="Core", path="Sources/Core", dependencies=("Conf",)),
        ),
        products=(Product(name="Core", targets=("Core",)),),
    )
"""

from dataclasses import dataclass, field, replace
from pathlib import PurePosixPath, PureWindowsPath
from typing import Dict, Optional, Tuple

from .versions import format_version, parse_version


def is_relative_pattern(pattern: str) -> bool:
    """Check that a path or glob pattern is relative (no root or drive)."""
    text = pattern.strip().replace("\\", "/")
    return not PurePosixPath(text).is_absolute() and not PureWindowsPath(text).drive


@dataclass(frozen=True)
class CSettings:
    """Per-target compiler settings, used only while compiling that target."""

    header_search_paths: Tuple[str, ...] = ()  # Relative to the target path
    defines: Tuple[str, ...] = ()              # NAME or NAME=VALUE
    unsafe_flags: Tuple[str, ...] = ()         # Passed through verbatim


@dataclass(frozen=True)
class Target:
    """A named, independently compilable unit."""

    name: str
    path: str
    dependencies: Tuple[str, ...] = ()
    sources: Tuple[str, ...] = ()  # Empty means the whole target path
    exclude: Tuple[str, ...] = ()
    public_headers_path: Optional[str] = None
    c_settings: CSettings = field(default_factory=CSettings)

    @property
    def source_roots(self) -> Tuple[str, ...]:
        """Source roots relative to the target path."""
        return self.sources or (".",)

    def with_exclusions(self, patterns: Tuple[str, ...]) -> "Target":
        """Return a copy with additional exclusion patterns appended."""
        merged = self.exclude + tuple(p for p in patterns if p not in self.exclude)
        return replace(self, exclude=merged)


@dataclass(frozen=True)
class Product:
    """A named artifact exposed to consumers, composed of targets."""

    name: str
    targets: Tuple[str, ...]


@dataclass(frozen=True)
class PlatformConstraint:
    """Minimum supported version for one operating-system family."""

    family: str
    minimum: str

    @property
    def minimum_version(self) -> Tuple[int, ...]:
        return parse_version(self.minimum)

    def matches_family(self, family: str) -> bool:
        return self.family.lower() == family.lower()

    def allows(self, version: str) -> bool:
        """Check a platform version against the minimum.

        Raises:
            ValueError: If version is not a dotted numeric version
        """
        return parse_version(version) >= self.minimum_version


@dataclass(frozen=True)
class VariantConfig:
    """Capability-keyed configuration record for one descriptor variant.

    Attributes:
        name: Variant label (e.g., "legacy", "current")
        min_tools_version: Lowest consumer tools version that selects it
        products: Names of the products visible under this variant
        platforms: Minimum platform versions (empty means unconstrained)
        extra_exclusions: Additional exclusion patterns keyed by target name
    """

    name: str
    min_tools_version: str
    products: Tuple[str, ...]
    platforms: Tuple[PlatformConstraint, ...] = ()
    extra_exclusions: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    @property
    def tools_version(self) -> Tuple[int, ...]:
        return parse_version(self.min_tools_version)

    @property
    def label(self) -> str:
        return f"{self.name} (tools {format_version(self.tools_version)})"

    def exclusions_for(self, target: str) -> Tuple[str, ...]:
        for name, patterns in self.extra_exclusions:
            if name == target:
                return patterns
        return ()


@dataclass(frozen=True)
class PackageDescriptor:
    """Complete declarative description of the stack."""

    name: str
    targets: Tuple[Target, ...]
    products: Tuple[Product, ...] = ()
    c_language_standard: Optional[str] = None
    cxx_language_standard: Optional[str] = None
    variants: Tuple[VariantConfig, ...] = ()

    def target_names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.targets)

    def product_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.products)

    def targets_by_name(self) -> Dict[str, Target]:
        # First declaration wins; duplicates are reported by GraphBuilder
        by_name: Dict[str, Target] = {}
        for target in self.targets:
            by_name.setdefault(target.name, target)
        return by_name
