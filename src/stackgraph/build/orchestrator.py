"""
Resolution orchestration for stackgraph descriptors.

This module coordinates the whole resolution, from a declared tools version to
an immutable BuildPlan:
- Variant selection (tools version)
- Platform constraint check (current variants only)
- Graph validation and build order
- Source-set resolution per target
- Header visibility (include paths, optional #include verification)
- Flags, products and their public interface

Every phase is fail-fast; the state reached is recorded in
StackResolver.state, including the terminal failure state.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict

from ..config.descriptor import PackageDescriptor
from ..errors import (
    CycleDetectedError,
    DuplicateTargetError,
    InvalidVariantError,
    InvisibleHeaderReferenceError,
    MissingSourceRootError,
    PlatformUnsupportedError,
    UnresolvedReferenceError,
)
from .build_plan import BuildPlan, ProductPlan, TargetPlan
from .flag_builder import FlagBuilder
from .graph_builder import BuildGraph, GraphBuilder
from .header_visibility import HeaderVisibilityResolver
from .source_resolver import SourceSet, SourceSetResolver, find_shared_files
from .variant_selector import DescriptorVariantSelector


class ResolutionState(Enum):
    """Progress of one resolution."""

    UNSELECTED = "unselected"
    VARIANT_CHOSEN = "variant_chosen"
    GRAPH_VALIDATED = "graph_validated"
    READY = "ready"

    # Terminal failures
    INVALID_VARIANT = "invalid_variant"
    PLATFORM_UNSUPPORTED = "platform_unsupported"
    CYCLE_DETECTED = "cycle_detected"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    DUPLICATE_TARGET = "duplicate_target"
    MISSING_SOURCE_ROOT = "missing_source_root"
    INVISIBLE_HEADER = "invisible_header"

    @property
    def is_failure(self) -> bool:
        return self not in _PROGRESS_STATES


_PROGRESS_STATES = {
    ResolutionState.UNSELECTED,
    ResolutionState.VARIANT_CHOSEN,
    ResolutionState.GRAPH_VALIDATED,
    ResolutionState.READY,
}

_FAILURE_STATES = {
    InvalidVariantError: ResolutionState.INVALID_VARIANT,
    PlatformUnsupportedError: ResolutionState.PLATFORM_UNSUPPORTED,
    CycleDetectedError: ResolutionState.CYCLE_DETECTED,
    UnresolvedReferenceError: ResolutionState.UNRESOLVED_REFERENCE,
    DuplicateTargetError: ResolutionState.DUPLICATE_TARGET,
    MissingSourceRootError: ResolutionState.MISSING_SOURCE_ROOT,
    InvisibleHeaderReferenceError: ResolutionState.INVISIBLE_HEADER,
}


class StackResolver:
    """
    Resolves a descriptor into a BuildPlan.

    The resolution runs these phases in order:
    1. Select the descriptor variant from the tools version
    2. Check platform constraints (before any target is looked at)
    3. Apply the variant (extra exclusions, visible products)
    4. Validate the graph and compute the build order
    5. Resolve every target's source set
    6. Compute include paths, public headers and flags
    7. Optionally verify every #include against header visibility

    Example usage:
        resolver = StackResolver(Path("."))
        plan = resolver.resolve(
            gnome_descriptor(),
            tools_version="5.9",
            platform="macOS",
            platform_version="14.0",
        )
        print(plan.order)
    """

    def __init__(self, package_root: Path, show_progress: bool = False):
        """
        Initialize stack resolver.

        Args:
            package_root: Directory that target paths are relative to
            show_progress: Whether to show progress bars while resolving
        """
        self.package_root = Path(package_root)
        self.show_progress = show_progress
        self.state = ResolutionState.UNSELECTED

    def resolve(
        self,
        descriptor: PackageDescriptor,
        tools_version: str,
        platform: str,
        platform_version: str,
        verify_headers: bool = False,
    ) -> BuildPlan:
        """
        Execute the complete resolution.

        Args:
            descriptor: Descriptor holding all variants
            tools_version: Declared consumer tools version
            platform: Operating-system family being built for
            platform_version: Operating-system version being built for
            verify_headers: Scan #include directives and enforce visibility

        Returns:
            BuildPlan ready for the compilation step

        Raises:
            DescriptorError: Subclass matching the first failure
        """
        self.state = ResolutionState.UNSELECTED
        try:
            return self._resolve(
                descriptor, tools_version, platform, platform_version, verify_headers
            )
        except tuple(_FAILURE_STATES) as e:
            self.state = failure_state(e)
            logging.debug(f"Resolution failed in state {self.state.value}: {e}")
            raise

    def _resolve(
        self,
        descriptor: PackageDescriptor,
        tools_version: str,
        platform: str,
        platform_version: str,
        verify_headers: bool,
    ) -> BuildPlan:
        # Phase 1-2: variant and platform
        selector = DescriptorVariantSelector(descriptor.variants)
        variant = selector.select(tools_version)
        self.state = ResolutionState.VARIANT_CHOSEN
        logging.info(f"Selected descriptor variant {variant.label}")

        selector.check_platform(variant, platform, platform_version)

        # Phase 3-4: effective graph
        effective = selector.apply(descriptor, variant)
        graph = GraphBuilder(effective.targets, effective.products).build()
        self.state = ResolutionState.GRAPH_VALIDATED
        logging.info(f"Build order: {' -> '.join(graph.order)}")

        # Phase 5: source sets
        source_sets = SourceSetResolver(self.package_root).resolve_all(
            graph.ordered_targets(), show_progress=self.show_progress
        )
        self._report_shared_files(source_sets)

        # Phase 6-7: headers, flags, products
        visibility = HeaderVisibilityResolver(graph, source_sets)
        target_plans = []
        for target in graph.ordered_targets():
            if verify_headers:
                visibility.verify(target.name)

            include_dirs = visibility.include_dirs(target.name)
            flags = FlagBuilder(
                target,
                include_dirs,
                c_standard=effective.c_language_standard,
                cxx_standard=effective.cxx_language_standard,
            ).build_flags()

            target_plans.append(TargetPlan(
                target=target,
                source_set=source_sets[target.name],
                include_dirs=tuple(include_dirs),
                public_headers=tuple(visibility.public_headers(target.name)),
                c_flags=tuple(flags['cflags'] + flags['common']),
                cxx_flags=tuple(flags['cxxflags'] + flags['common']),
            ))

        product_plans = [
            ProductPlan(
                name=product.name,
                targets=tuple(graph.product_closure(product.name)),
                public_interface=tuple(visibility.product_interface(product.name)),
            )
            for product in graph.products
        ]

        self.state = ResolutionState.READY
        return BuildPlan(
            package_name=effective.name,
            package_root=self.package_root,
            variant=variant,
            graph=graph,
            targets=tuple(target_plans),
            products=tuple(product_plans),
        )


    def validate(self, descriptor: PackageDescriptor, tools_version: str) -> BuildGraph:
        """
        Select a variant and validate its graph without touching the filesystem.

        Platform constraints are not checked.

        Returns:
            Validated BuildGraph of the effective descriptor
        """
        self.state = ResolutionState.UNSELECTED
        try:
            selector = DescriptorVariantSelector(descriptor.variants)
            variant = selector.select(tools_version)
            self.state = ResolutionState.VARIANT_CHOSEN

            effective = selector.apply(descriptor, variant)
            graph = GraphBuilder(effective.targets, effective.products).build()
            self.state = ResolutionState.GRAPH_VALIDATED
            return graph
        except tuple(_FAILURE_STATES) as e:
            self.state = failure_state(e)
            raise

    @staticmethod
    def _report_shared_files(source_sets: Dict[str, SourceSet]) -> None:
        shared = find_shared_files(source_sets.values())
        for path, owners in sorted(shared.items()):
            logging.warning(f"{path} is compiled by several targets: {', '.join(owners)}")


def failure_state(error: Exception) -> ResolutionState:
    """Map a resolution error to its terminal state."""
    for error_type, state in _FAILURE_STATES.items():
        if isinstance(error, error_type):
            return state
    raise ValueError(f"Not a resolution failure: {error!r}")
