"""
Error taxonomy for descriptor resolution.

Every failure raised while selecting a variant, validating the target graph,
resolving source sets or checking header visibility derives from
DescriptorError. Resolution is fail-fast: the first error aborts the whole
plan. None of these errors are transient, so nothing is retried.
"""

from pathlib import Path
from typing import List, Optional, Sequence


class DescriptorError(Exception):
    """Base class for all build descriptor errors."""
    pass


class DescriptorParseError(DescriptorError):
    """Raised when a descriptor file cannot be read or is malformed."""
    pass


class DuplicateTargetError(DescriptorError):
    """Raised when two targets declare the same name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Target '{name}' is declared more than once")


class UnresolvedReferenceError(DescriptorError):
    """Raised when a dependency or product member names an undeclared target."""

    def __init__(self, reference: str, referrer: str, kind: str = "target", what: str = "target"):
        self.reference = reference
        self.referrer = referrer
        self.kind = kind
        super().__init__(
            f"{kind.capitalize()} '{referrer}' references undeclared {what} '{reference}'"
        )


class CycleDetectedError(DescriptorError):
    """Raised when the dependency graph contains a cycle."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle: List[str] = list(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(
            f"Dependency cycle between targets {', '.join(self.cycle)}: {path}"
        )


class MissingSourceRootError(DescriptorError):
    """Raised when a target's path or one of its source roots does not exist."""

    def __init__(self, target: str, path: Path):
        self.target = target
        self.path = Path(path)
        super().__init__(f"Source root for target '{target}' does not exist: {path}")


class InvisibleHeaderReferenceError(DescriptorError):
    """Raised when a target includes a header it is not allowed to see."""

    def __init__(
        self,
        target: str,
        include: str,
        owner: str,
        header: Path,
        source: Optional[Path] = None,
        reason: str = "not a public header",
    ):
        self.target = target
        self.include = include
        self.owner = owner
        self.header = Path(header)
        self.source = source
        self.reason = reason
        where = f" (from {source})" if source else ""
        super().__init__(
            f"Target '{target}' includes '{include}'{where}, which resolves to "
            + f"{header} of target '{owner}': {reason}"
        )


class PlatformUnsupportedError(DescriptorError):
    """Raised when the build platform violates a minimum-version constraint."""

    def __init__(self, family: str, version: str, minimum: Optional[str] = None):
        self.family = family
        self.version = version
        self.minimum = minimum
        if minimum is None:
            message = f"Invalid version '{version}' for platform {family}"
        else:
            message = (
                f"Platform {family} {version} is not supported: "
                + f"minimum required version is {minimum}"
            )
        super().__init__(message)


class InvalidVariantError(DescriptorError):
    """Raised when the tools version matches no descriptor variant."""

    def __init__(self, tools_version: str, known: Sequence[str] = ()):
        self.tools_version = tools_version
        self.known = list(known)
        super().__init__(
            f"Tools version '{tools_version}' matches no descriptor variant. "
            + f"Known variants: {', '.join(self.known) or 'none'}"
        )
