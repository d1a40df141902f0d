"""
Build graph resolution for stackgraph.

This module provides the resolution pipeline including:
- Descriptor variant selection and platform checks
- Target graph validation and build order
- Source-set resolution with exclusions
- Header visibility and include paths
- Build plans and compile_commands.json generation
"""

from .build_plan import BuildPlan, ProductPlan, TargetPlan
from .flag_builder import FlagBuilder
from .graph_builder import BuildGraph, GraphBuilder
from .header_visibility import HeaderReference, HeaderVisibilityResolver, scan_includes
from .orchestrator import ResolutionState, StackResolver, failure_state
from .source_resolver import SourceSet, SourceSetResolver, matches_exclusion
from .variant_selector import DescriptorVariantSelector

__all__ = [
    'BuildPlan',
    'ProductPlan',
    'TargetPlan',
    'FlagBuilder',
    'BuildGraph',
    'GraphBuilder',
    'HeaderReference',
    'HeaderVisibilityResolver',
    'scan_includes',
    'ResolutionState',
    'StackResolver',
    'failure_state',
    'SourceSet',
    'SourceSetResolver',
    'matches_exclusion',
    'DescriptorVariantSelector',
]
