"""
Target graph construction and topological ordering.

This module validates a set of target and product declarations and turns them
into an immutable BuildGraph whose build order lists every target after all of
its dependencies.

Validation runs in a fixed order so the same broken descriptor always reports
the same error:
1. Duplicate target names
2. Dependencies naming undeclared targets
3. Products naming undeclared targets
4. Dependency cycles
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from ..config.descriptor import Product, Target
from ..errors import CycleDetectedError, DuplicateTargetError, UnresolvedReferenceError

_IN_PROGRESS = 1
_DONE = 2


@dataclass(frozen=True)
class BuildGraph:
    """Validated, ordered target graph.

    Attributes:
        targets: Targets in declaration order
        products: Products in declaration order
        order: Target names in build order (dependencies first)
    """

    targets: Tuple[Target, ...]
    products: Tuple[Product, ...]
    order: Tuple[str, ...]

    def target(self, name: str) -> Target:
        for target in self.targets:
            if target.name == name:
                return target
        raise KeyError(name)

    def product(self, name: str) -> Product:
        for product in self.products:
            if product.name == name:
                return product
        raise KeyError(name)

    def ordered_targets(self) -> List[Target]:
        """Get targets in build order."""
        return [self.target(name) for name in self.order]

    def dependency_closure(self, name: str) -> List[str]:
        """
        Get all direct and transitive dependencies of a target.

        Args:
            name: Target name

        Returns:
            Dependency names in build order, excluding the target itself
        """
        seen = set()
        pending = list(self.target(name).dependencies)
        while pending:
            dep = pending.pop()
            if dep in seen:
                continue
            seen.add(dep)
            pending.extend(self.target(dep).dependencies)
        return [n for n in self.order if n in seen]

    def product_closure(self, name: str) -> List[str]:
        """Get the member targets of a product plus their dependencies, in build order."""
        members = set(self.product(name).targets)
        closure = set(members)
        for member in members:
            closure.update(self.dependency_closure(member))
        return [n for n in self.order if n in closure]

    def stages(self) -> List[List[str]]:
        """
        Group the build order into stages of mutually independent targets.

        Every target in a stage depends only on targets of earlier stages, so
        the members of one stage may compile concurrently.

        Returns:
            List of stages, each a list of target names in build order
        """
        levels: Dict[str, int] = {}
        for name in self.order:
            deps = self.target(name).dependencies
            levels[name] = 1 + max((levels[d] for d in deps), default=-1)

        stages: List[List[str]] = []
        for name in self.order:
            level = levels[name]
            while len(stages) <= level:
                stages.append([])
            stages[level].append(name)
        return stages


class GraphBuilder:
    """
    Builds a validated BuildGraph from target and product declarations.

    Example usage:
        graph = GraphBuilder(descriptor.targets, descriptor.products).build()
        for name in graph.order:
            print(name)
    """

    def __init__(self, targets: Sequence[Target], products: Sequence[Product] = ()):
        """
        Initialize graph builder.

        Args:
            targets: Target declarations in declaration order
            products: Product declarations
        """
        self.targets = tuple(targets)
        self.products = tuple(products)

    def build(self) -> BuildGraph:
        """
        Validate the declarations and compute the build order.

        Returns:
            BuildGraph with a deterministic build order

        Raises:
            DuplicateTargetError: If two targets share a name
            UnresolvedReferenceError: If a dependency or product member is undeclared
            CycleDetectedError: If the dependency graph contains a cycle
        """
        by_name = self._index_targets()
        self._check_references(by_name)
        order = self._topological_order(by_name)

        logging.debug(f"Build order: {', '.join(order)}")
        return BuildGraph(targets=self.targets, products=self.products, order=tuple(order))

    def _index_targets(self) -> Dict[str, Target]:
        by_name: Dict[str, Target] = {}
        for target in self.targets:
            if target.name in by_name:
                raise DuplicateTargetError(target.name)
            by_name[target.name] = target
        return by_name

    def _check_references(self, by_name: Dict[str, Target]) -> None:
        for target in self.targets:
            for dep in target.dependencies:
                if dep not in by_name:
                    raise UnresolvedReferenceError(dep, target.name, kind="target")

        for product in self.products:
            for member in product.targets:
                if member not in by_name:
                    raise UnresolvedReferenceError(member, product.name, kind="product")

    def _topological_order(self, by_name: Dict[str, Target]) -> List[str]:
        """
        Depth-first post-order over dependency edges.

        Roots are visited in declaration order and dependencies in the order
        they are listed, which makes declaration order the tie-break between
        independent targets.
        """
        marks: Dict[str, int] = {}
        path: List[str] = []
        order: List[str] = []

        def visit(name: str) -> None:
            mark = marks.get(name)
            if mark == _DONE:
                return
            if mark == _IN_PROGRESS:
                raise CycleDetectedError(path[path.index(name):])

            marks[name] = _IN_PROGRESS
            path.append(name)
            for dep in by_name[name].dependencies:
                visit(dep)
            path.pop()
            marks[name] = _DONE
            order.append(name)

        for target in self.targets:
            visit(target.name)

        return order
