"""
Header visibility rules.

A target sees:
- Its own public headers and its private header search paths
- The public headers of its direct and transitive dependencies

Nothing else. Private header search paths of a dependency never reach a
dependent's include path, and an #include that can only be satisfied by a
dependency's non-public header (or by any header of a target outside the
dependency closure) is an InvisibleHeaderReferenceError. Includes that resolve
to nothing inside the graph are treated as system headers and ignored.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set

from ..errors import InvisibleHeaderReferenceError, MissingSourceRootError
from .graph_builder import BuildGraph
from .source_resolver import HEADER_SUFFIXES, SourceSet, matches_exclusion, normalize_pattern

_INCLUDE_RE = re.compile(r'^[ \t]*#[ \t]*(?:include|import)[ \t]*([<"])([^>"\n]+)[>"]', re.MULTILINE)
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)


def _join(directory: Path, include: str) -> Path:
    # Collapse "." and ".." so results compare equal to enumerated paths
    return Path(os.path.normpath(directory / include))


@dataclass(frozen=True)
class HeaderReference:
    """One #include directive found in a target's files."""

    source: Path
    include: str
    quoted: bool
    resolved: Optional[Path]  # None for headers outside the graph


def scan_includes(text: str) -> List[tuple]:
    """
    Extract #include / #import directives from C source text.

    Block comments are stripped before scanning so commented-out includes are
    ignored.

    Returns:
        List of (spelling, quoted) tuples in file order

    Example:
        >>> scan_includes('#include "a.h"\\n#include <glib.h>')
        [('a.h', True), ('glib.h', False)]
    """
    text = _BLOCK_COMMENT_RE.sub("", text)
    return [(m.group(2).strip(), m.group(1) == '"') for m in _INCLUDE_RE.finditer(text)]


class HeaderVisibilityResolver:
    """
    Computes include paths and enforces header visibility for a graph.

    Example usage:
        visibility = HeaderVisibilityResolver(graph, source_sets)
        include_dirs = visibility.include_dirs("Gtk")
        visibility.verify("Gtk")
    """

    def __init__(self, graph: BuildGraph, source_sets: Mapping[str, SourceSet]):
        """
        Initialize header visibility resolver.

        Args:
            graph: Validated target graph
            source_sets: Resolved source set of every target in the graph
        """
        self.graph = graph
        self.source_sets = source_sets
        self._public_cache: Dict[str, Set[Path]] = {}

    def root(self, name: str) -> Path:
        return self.source_sets[name].root

    def public_dir(self, name: str) -> Optional[Path]:
        """Get the absolute public headers directory of a target, if it has one."""
        target = self.graph.target(name)
        if target.public_headers_path is None:
            return None
        return self.root(name) / normalize_pattern(target.public_headers_path)

    def private_dirs(self, name: str) -> List[Path]:
        """Get the private header search paths of a target (absolute)."""
        target = self.graph.target(name)
        return [
            self.root(name) / normalize_pattern(p)
            for p in target.c_settings.header_search_paths
        ]

    def public_headers(self, name: str) -> List[Path]:
        """
        Get the headers a target exposes to its dependents.

        Every header file under the public headers directory counts, minus
        files removed by the target's exclusion patterns.

        Args:
            name: Target name

        Returns:
            Sorted absolute header paths (empty if the target has no public path)

        Raises:
            MissingSourceRootError: If the declared public headers path is missing
        """
        return sorted(self._public_set(name), key=lambda p: p.as_posix())

    def include_dirs(self, name: str) -> List[Path]:
        """
        Get the header search directories used while compiling a target.

        Order: own public dir, own private search paths, then the public dirs
        of the dependency closure, nearest dependency first.
        """
        dirs: List[Path] = []
        own_public = self.public_dir(name)
        if own_public is not None:
            dirs.append(own_public)
        dirs.extend(self.private_dirs(name))

        for dep in reversed(self.graph.dependency_closure(name)):
            dep_public = self.public_dir(dep)
            if dep_public is not None:
                dirs.append(dep_public)

        unique: List[Path] = []
        for d in dirs:
            if d not in unique:
                unique.append(d)
        return unique

    def check_reference(
        self, name: str, include: str, including_file: Optional[Path] = None
    ) -> Optional[Path]:
        """
        Resolve an #include spelling from the point of view of one target.

        Args:
            name: Target doing the include
            include: Header spelling as written (e.g., "gio/gio.h")
            including_file: Absolute path of the including file, for
                quoted includes relative to it (optional)

        Returns:
            Resolved header path, or None if the header is outside the graph

        Raises:
            InvisibleHeaderReferenceError: If the header belongs to another
                target and is not visible to this one
        """
        closure = self.graph.dependency_closure(name)

        if including_file is not None:
            candidate = _join(Path(including_file).parent, include)
            if candidate.is_file():
                self._authorize(name, include, candidate, closure, including_file)
                return candidate

        own_public = self.public_dir(name)
        own_dirs = ([own_public] if own_public is not None else []) + self.private_dirs(name)
        for d in own_dirs:
            candidate = _join(d, include)
            if candidate.is_file():
                # Search paths reaching into another target are still checked
                self._authorize(name, include, candidate, closure, including_file)
                return candidate

        for dep in reversed(closure):
            dep_public = self.public_dir(dep)
            if dep_public is None:
                continue
            candidate = _join(dep_public, include)
            if candidate.is_file() and candidate in self._public_set(dep):
                return candidate

        # Not visible: find out whether it is hidden inside another target
        others = list(closure) + [
            n for n in self.graph.order if n != name and n not in closure
        ]
        for other in others:
            search = [self.root(other)] + self.private_dirs(other)
            other_public = self.public_dir(other)
            if other_public is not None:
                search.insert(0, other_public)
            for d in search:
                candidate = _join(d, include)
                if not candidate.is_file():
                    continue
                self._authorize(name, include, candidate, closure, including_file)
                owner = self.owner_of(candidate)
                if owner is not None and owner != name:
                    # Public header of a dependency, but no include dir reaches this spelling
                    raise InvisibleHeaderReferenceError(
                        name, include, owner, candidate, including_file,
                        reason="spelling is not reachable from the include path",
                    )

        logging.debug(f"Target '{name}': '{include}' is outside the graph")
        return None

    def verify(self, name: str) -> List[HeaderReference]:
        """
        Check every #include in a target's resolved files.

        Args:
            name: Target name

        Returns:
            All header references found, in file order

        Raises:
            InvisibleHeaderReferenceError: On the first invisible reference
        """
        source_set = self.source_sets[name]
        references: List[HeaderReference] = []

        for rel in source_set.compilation_units + source_set.headers:
            path = source_set.root / rel
            text = path.read_text(encoding="utf-8", errors="replace")
            for include, quoted in scan_includes(text):
                resolved = self.check_reference(
                    name, include, including_file=path if quoted else None
                )
                references.append(HeaderReference(path, include, quoted, resolved))

        logging.debug(f"Target '{name}': {len(references)} includes verified")
        return references

    def product_interface(self, product: str) -> List[Path]:
        """
        Get the public interface of a product.

        Returns:
            Sorted union of the public headers of every target in the
            product's dependency closure
        """
        headers: Set[Path] = set()
        for name in self.graph.product_closure(product):
            headers |= self._public_set(name)
        return sorted(headers, key=lambda p: p.as_posix())

    def owner_of(self, path: Path) -> Optional[str]:
        """Get the target whose directory contains a path (deepest match wins)."""
        best = None
        best_depth = -1
        resolved = Path(path).resolve()
        for name in self.graph.order:
            root = self.root(name).resolve()
            try:
                resolved.relative_to(root)
            except ValueError:
                continue
            if len(root.parts) > best_depth:
                best, best_depth = name, len(root.parts)
        return best

    def _authorize(
        self,
        name: str,
        include: str,
        header: Path,
        closure: List[str],
        including_file: Optional[Path],
    ) -> None:
        owner = self.owner_of(header)
        if owner is None or owner == name:
            return
        if owner not in closure:
            raise InvisibleHeaderReferenceError(
                name, include, owner, header, including_file,
                reason=f"'{owner}' is not a dependency of '{name}'",
            )
        if header not in self._public_set(owner):
            raise InvisibleHeaderReferenceError(
                name, include, owner, header, including_file,
                reason="not a public header",
            )

    def _public_set(self, name: str) -> Set[Path]:
        if name in self._public_cache:
            return self._public_cache[name]

        target = self.graph.target(name)
        public_dir = self.public_dir(name)
        headers: Set[Path] = set()

        if public_dir is not None:
            if not public_dir.is_dir():
                raise MissingSourceRootError(name, public_dir)
            root = self.root(name)
            for path in public_dir.rglob("*"):
                if path.suffix not in HEADER_SUFFIXES or not path.is_file():
                    continue
                rel = path.relative_to(root)
                if any(part.startswith(".") for part in rel.parts):
                    continue
                if any(matches_exclusion(rel.as_posix(), p) for p in target.exclude):
                    continue
                headers.add(Path(os.path.normpath(path)))

        self._public_cache[name] = headers
        return headers
