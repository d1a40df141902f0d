"""
Source-set resolution.

This module handles:
- Enumerating every file under a target's source roots
- Removing files matched by the target's exclusion patterns
- Splitting the result into compilation units and headers

Exclusion is an explicit set difference over the enumerated path list, so a
resolution has no side effects and the same inputs always produce the same
sorted set.
"""

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from tqdm import tqdm

from ..config.descriptor import Target, is_relative_pattern
from ..errors import DescriptorParseError, MissingSourceRootError

# Files compiled into object code
SOURCE_SUFFIXES = {".c", ".cc", ".cpp", ".cxx", ".m", ".mm", ".s", ".S"}

HEADER_SUFFIXES = {".h", ".hh", ".hpp", ".hxx"}

_GLOB_CHARS = set("*?[")


@dataclass(frozen=True)
class SourceSet:
    """Resolved files of one target.

    Attributes:
        target: Target name
        root: Absolute target directory
        files: Every participating file, relative to root, sorted by path
        unmatched_exclusions: Exclusion patterns that matched nothing
    """

    target: str
    root: Path
    files: Tuple[Path, ...]
    unmatched_exclusions: Tuple[str, ...] = ()

    @property
    def compilation_units(self) -> List[Path]:
        """Files that compile to object files."""
        return [f for f in self.files if f.suffix in SOURCE_SUFFIXES]

    @property
    def headers(self) -> List[Path]:
        return [f for f in self.files if f.suffix in HEADER_SUFFIXES]

    def absolute(self, files: Optional[Iterable[Path]] = None) -> List[Path]:
        """Get absolute paths (all files when files is None)."""
        if files is None:
            files = self.files
        return [self.root / f for f in files]

    def __contains__(self, item: object) -> bool:
        return Path(str(item)) in self.files


def normalize_pattern(pattern: str) -> str:
    """Normalize an exclusion pattern to a clean relative POSIX path."""
    text = pattern.strip().replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    text = text.rstrip("/")
    return "" if text == "." else text


def matches_exclusion(relative_path: str, pattern: str) -> bool:
    """
    Check whether a target-relative file path is excluded by a pattern.

    A pattern excludes a file when it names the file, names a directory that
    contains the file, or matches the file or one of its parent directories
    as an fnmatch glob.

    Args:
        relative_path: File path relative to the target directory (POSIX form)
        pattern: Exclusion pattern relative to the target directory

    Returns:
        True if the file is excluded

    Example:
        >>> matches_exclusion("gtk/theme/Default/gtk.css", "gtk/theme")
        True
        >>> matches_exclusion("gtk/themes.c", "gtk/theme")
        False
    """
    pattern = normalize_pattern(pattern)
    if not pattern:
        return True

    if relative_path == pattern or relative_path.startswith(pattern + "/"):
        return True

    if _GLOB_CHARS & set(pattern):
        parts = PurePosixPath(relative_path).parts
        for i in range(1, len(parts) + 1):
            if fnmatch.fnmatchcase("/".join(parts[:i]), pattern):
                return True

    return False


class SourceSetResolver:
    """
    Resolves the compiled-file set of targets.

    The resolver:
    1. Checks the target directory and every source root exist
    2. Enumerates all files under each root (hidden entries skipped)
    3. Removes files matched by any of the target's exclusion patterns
    4. Returns a sorted SourceSet

    Example usage:
        resolver = SourceSetResolver(Path("."))
        source_set = resolver.resolve(target)
        for path in source_set.compilation_units:
            print(path)
    """

    def __init__(self, package_root: Path):
        """
        Initialize source-set resolver.

        Args:
            package_root: Directory that target paths are relative to
        """
        self.package_root = Path(package_root)

    def target_dir(self, target: Target) -> Path:
        return self.package_root / target.path

    def resolve(self, target: Target) -> SourceSet:
        """
        Resolve the compiled-file set of one target.

        Args:
            target: Target to resolve

        Returns:
            SourceSet with files sorted by path

        Raises:
            MissingSourceRootError: If the target directory or a source root is missing
            DescriptorParseError: If an exclusion pattern is not a relative path
        """
        for pattern in target.exclude:
            if not is_relative_pattern(pattern):
                raise DescriptorParseError(
                    f"Exclusion pattern '{pattern}' of target '{target.name}' "
                    + "must be relative to the target path"
                )

        target_dir = self.target_dir(target)
        if not target_dir.is_dir():
            raise MissingSourceRootError(target.name, target_dir)

        candidates = self._enumerate(target, target_dir)
        relative = {f.as_posix(): f for f in candidates}

        excluded: Set[str] = set()
        unmatched = []
        for pattern in target.exclude:
            hits = {name for name in relative if matches_exclusion(name, pattern)}
            if not hits and not self._pattern_exists(target_dir, pattern):
                logging.warning(
                    f"Exclusion pattern '{pattern}' of target '{target.name}' "
                    + "matches no files; the descriptor may be stale"
                )
                unmatched.append(pattern)
            elif not hits:
                logging.debug(
                    f"Exclusion pattern '{pattern}' of target '{target.name}' "
                    + "matches only paths outside its source roots"
                )
            excluded |= hits

        files = sorted(
            (relative[name] for name in set(relative) - excluded),
            key=lambda p: p.as_posix(),
        )
        logging.debug(
            f"Target '{target.name}': {len(files)} files "
            + f"({len(excluded)} excluded by {len(target.exclude)} patterns)"
        )

        return SourceSet(
            target=target.name,
            root=target_dir,
            files=tuple(files),
            unmatched_exclusions=tuple(unmatched),
        )

    def resolve_all(
        self, targets: Sequence[Target], show_progress: bool = False
    ) -> Dict[str, SourceSet]:
        """
        Resolve several targets, in the given order.

        Args:
            targets: Targets to resolve (typically in build order)
            show_progress: Whether to show a progress bar

        Returns:
            Dictionary of target name to SourceSet, in the given order
        """
        results: Dict[str, SourceSet] = {}
        for target in tqdm(
            targets, desc="Resolving sources", unit="target", disable=not show_progress
        ):
            results[target.name] = self.resolve(target)
        return results

    def _enumerate(self, target: Target, target_dir: Path) -> Set[Path]:
        """
        Enumerate files under every source root of a target.

        Args:
            target: Target being resolved
            target_dir: Absolute target directory

        Returns:
            Set of file paths relative to target_dir
        """
        files: Set[Path] = set()

        for root in target.source_roots:
            root_path = target_dir / normalize_pattern(root)
            if not root_path.exists():
                raise MissingSourceRootError(target.name, root_path)

            if root_path.is_file():
                files.add(root_path.relative_to(target_dir))
                continue

            for path in root_path.rglob("*"):
                rel = path.relative_to(target_dir)
                if any(part.startswith(".") for part in rel.parts):
                    continue
                if path.is_file():
                    files.add(rel)

        return files

    @staticmethod
    def _pattern_exists(target_dir: Path, pattern: str) -> bool:
        """Check whether a pattern names an existing path outside the source roots."""
        normalized = normalize_pattern(pattern)
        if _GLOB_CHARS & set(normalized):
            return any(target_dir.glob(normalized))
        return (target_dir / normalized).exists()


def find_shared_files(source_sets: Iterable[SourceSet]) -> Dict[Path, List[str]]:
    """
    Find files claimed by more than one target.

    Overlapping source roots let one target's private sources leak into
    another's compilation, so callers report them.

    Returns:
        Dictionary of absolute file path to the names of the claiming targets
    """
    owners: Dict[Path, List[str]] = {}
    for source_set in source_sets:
        for path in source_set.absolute():
            owners.setdefault(path.resolve(), []).append(source_set.target)
    return {path: names for path, names in owners.items() if len(names) > 1}
