"""
Immutable build plan handed to the compilation step.

A BuildPlan records, for one resolution:
- The selected descriptor variant
- The targets in build order, each with its source set, include path and flags
- The visible products and their public header interface

It can be serialized as a summary dictionary or as compile_commands.json
entries. Producing the plan never compiles anything.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..config.descriptor import Target, VariantConfig
from .flag_builder import CXX_SUFFIXES
from .graph_builder import BuildGraph
from .source_resolver import SourceSet


@dataclass(frozen=True)
class TargetPlan:
    """Everything needed to compile one target."""

    target: Target
    source_set: SourceSet
    include_dirs: Tuple[Path, ...]
    public_headers: Tuple[Path, ...]
    c_flags: Tuple[str, ...]
    cxx_flags: Tuple[str, ...]

    @property
    def name(self) -> str:
        return self.target.name

    def flags_for(self, source: Path) -> List[str]:
        return list(self.cxx_flags if Path(source).suffix in CXX_SUFFIXES else self.c_flags)


@dataclass(frozen=True)
class ProductPlan:
    """A product visible under the selected variant."""

    name: str
    targets: Tuple[str, ...]            # Member targets plus dependency closure
    public_interface: Tuple[Path, ...]  # Union of their public headers


@dataclass(frozen=True)
class BuildPlan:
    """Result of a successful resolution."""

    package_name: str
    package_root: Path
    variant: VariantConfig
    graph: BuildGraph
    targets: Tuple[TargetPlan, ...]
    products: Tuple[ProductPlan, ...]

    @property
    def order(self) -> Tuple[str, ...]:
        return self.graph.order

    def target_plan(self, name: str) -> TargetPlan:
        for plan in self.targets:
            if plan.name == name:
                return plan
        raise KeyError(name)

    def stages(self) -> List[List[str]]:
        return self.graph.stages()

    def compile_commands(
        self, compiler: str = "cc", build_dir: Optional[Path] = None
    ) -> List[Dict[str, Any]]:
        """
        Generate compilation database entries.

        Entries are grouped by target in build order; within a target they
        follow the sorted source set.

        Args:
            compiler: Compiler executable name or path
            build_dir: Object output directory (default: <package_root>/.build)

        Returns:
            List of compile_commands.json entries
        """
        if build_dir is None:
            build_dir = self.package_root / ".build"

        entries = []
        for plan in self.targets:
            for rel in plan.source_set.compilation_units:
                source = plan.source_set.root / rel
                output = build_dir / plan.name / rel.parent / f"{rel.name}.o"
                arguments = [compiler]
                arguments.extend(plan.flags_for(rel))
                arguments.extend(["-c", str(source), "-o", str(output)])
                entries.append({
                    "directory": str(self.package_root),
                    "file": str(source),
                    "arguments": arguments,
                    "output": str(output),
                })
        return entries

    def write_compile_commands(
        self, output_path: Path, compiler: str = "cc", build_dir: Optional[Path] = None
    ) -> Path:
        """Write compile_commands.json and return its path."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.compile_commands(compiler, build_dir), f, indent=2)
        return output_path

    def to_dict(self) -> Dict[str, Any]:
        """Summarize the plan as JSON-serializable data."""
        return {
            "package": self.package_name,
            "variant": self.variant.name,
            "tools_version": self.variant.min_tools_version,
            "build_order": list(self.order),
            "stages": self.stages(),
            "targets": {
                plan.name: {
                    "dependencies": list(plan.target.dependencies),
                    "sources": [f.as_posix() for f in plan.source_set.compilation_units],
                    "files": len(plan.source_set.files),
                    "unmatched_exclusions": list(plan.source_set.unmatched_exclusions),
                    "include_dirs": [str(d) for d in plan.include_dirs],
                    "public_headers": len(plan.public_headers),
                }
                for plan in self.targets
            },
            "products": {
                product.name: {
                    "targets": list(product.targets),
                    "public_headers": len(product.public_interface),
                }
                for product in self.products
            },
        }
