"""
Descriptor variant selection.

A descriptor carries several VariantConfig records keyed by the minimum
consumer tools version that selects them. Selection picks the variant with
the greatest minimum not above the declared tools version. There is no
fallback: a value that is malformed or lower than every variant's minimum is
an InvalidVariantError.

Example:
    variants 5.5 (legacy) and 5.9 (current)
    tools 5.5 .. 5.8.x -> legacy
    tools 5.9 and up   -> current
    tools 5.4          -> InvalidVariantError
"""

import logging
from dataclasses import replace
from typing import Sequence

from ..config.descriptor import PackageDescriptor, VariantConfig
from ..config.versions import parse_version
from ..errors import InvalidVariantError, PlatformUnsupportedError, UnresolvedReferenceError


class DescriptorVariantSelector:
    """
    Chooses one descriptor variant and applies it.

    Example usage:
        selector = DescriptorVariantSelector(descriptor.variants)
        variant = selector.select("5.9")
        selector.check_platform(variant, "macOS", "14.2")
        effective = selector.apply(descriptor, variant)
    """

    def __init__(self, variants: Sequence[VariantConfig]):
        """
        Initialize variant selector.

        Args:
            variants: Known variants, in any order
        """
        self.variants = tuple(sorted(variants, key=lambda v: v.tools_version))

    def known_versions(self) -> Sequence[str]:
        return [v.min_tools_version for v in self.variants]

    def select(self, tools_version: str) -> VariantConfig:
        """
        Select the variant for a declared tools version.

        Args:
            tools_version: Declared minimum consumer tools version (e.g., "5.9")

        Returns:
            The selected VariantConfig

        Raises:
            InvalidVariantError: If the value is malformed or matches no variant
        """
        try:
            declared = parse_version(tools_version)
        except ValueError as e:
            raise InvalidVariantError(str(tools_version), self.known_versions()) from e

        chosen = None
        for variant in self.variants:
            if variant.tools_version <= declared:
                chosen = variant

        if chosen is None:
            raise InvalidVariantError(str(tools_version), self.known_versions())

        logging.debug(f"Tools version {tools_version} selects variant {chosen.label}")
        return chosen

    @staticmethod
    def check_platform(variant: VariantConfig, family: str, version: str) -> None:
        """
        Enforce the variant's minimum platform versions.

        Families without a constraint are unconstrained, and so is every
        family under a variant that declares no constraints.

        Args:
            variant: Selected variant
            family: Operating-system family (e.g., "macOS", "linux")
            version: Operating-system version (e.g., "14.2")

        Raises:
            PlatformUnsupportedError: If a constraint is violated or the
                version cannot be parsed
        """
        for constraint in variant.platforms:
            if not constraint.matches_family(family):
                continue
            try:
                allowed = constraint.allows(version)
            except ValueError as e:
                raise PlatformUnsupportedError(family, version) from e
            if not allowed:
                raise PlatformUnsupportedError(family, version, constraint.minimum)

    @staticmethod
    def apply(descriptor: PackageDescriptor, variant: VariantConfig) -> PackageDescriptor:
        """
        Derive the effective descriptor for a variant.

        Extra exclusions are merged into the named targets and only the
        variant's visible products are kept (in variant order). Targets are
        untouched otherwise; hidden products' targets remain implementation
        details of the visible ones.

        Raises:
            UnresolvedReferenceError: If the variant names an undeclared product
                or adds exclusions to an undeclared target
        """
        target_names = set(descriptor.target_names())
        for target_name, _ in variant.extra_exclusions:
            if target_name not in target_names:
                raise UnresolvedReferenceError(target_name, variant.name, kind="variant")

        targets = tuple(
            t.with_exclusions(variant.exclusions_for(t.name)) for t in descriptor.targets
        )

        products_by_name = {p.name: p for p in descriptor.products}
        products = []
        for name in variant.products:
            if name not in products_by_name:
                raise UnresolvedReferenceError(name, variant.name, kind="variant", what="product")
            products.append(products_by_name[name])

        return replace(descriptor, targets=targets, products=tuple(products))
