"""CLI utility functions for stackgraph.

This module provides common utilities used across CLI commands including:
- Descriptor discovery (stack.ini or the built-in GNOME descriptor)
- Host platform detection
- Logging setup
- Error handling and formatting
"""

import logging
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from stackgraph.config import PackageDescriptor, gnome_descriptor, load_descriptor
from stackgraph.errors import DescriptorError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class HostPlatform:
    """Operating-system family and version being built for."""

    family: str
    version: str


class DescriptorLocator:
    """Finds the descriptor for a project."""

    @staticmethod
    def locate(project_dir: Path, descriptor_path: Optional[Path] = None) -> PackageDescriptor:
        """Load the project's descriptor.

        Args:
            project_dir: Project directory (package root)
            descriptor_path: Explicit descriptor file (optional)

        Returns:
            The descriptor from stack.ini, or the built-in GNOME descriptor
            when the project has no stack.ini

        Raises:
            DescriptorParseError: If the descriptor file is invalid
        """
        descriptor = load_descriptor(project_dir, descriptor_path)
        if descriptor is None:
            logging.debug(f"No stack.ini in {project_dir}, using the built-in GNOME descriptor")
            return gnome_descriptor()
        return descriptor


class PlatformDetector:
    """Detects the host platform when none is given on the command line."""

    # platform.system() -> descriptor family name
    FAMILIES = {
        "Darwin": "macOS",
        "Linux": "linux",
        "Windows": "windows",
    }

    @staticmethod
    def detect(family: Optional[str] = None, version: Optional[str] = None) -> HostPlatform:
        """Detect or complete the platform family and version.

        Args:
            family: Explicit family (optional)
            version: Explicit version (optional)

        Returns:
            HostPlatform with both fields filled in
        """
        system = platform.system()
        detected_family = PlatformDetector.FAMILIES.get(system, system.lower() or "unknown")

        if family is None:
            family = detected_family

        if version is None:
            if family == "macOS" and system == "Darwin":
                version = platform.mac_ver()[0] or "0"
            else:
                version = "0"

        return HostPlatform(family=family, version=version)


def setup_logging(verbose: bool = False) -> None:
    """Setup console logging for the CLI."""
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Cycle detected")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_descriptor_error(error: DescriptorError) -> None:
        """Handle a resolution failure with standard formatting.

        Args:
            error: The DescriptorError to handle
        """
        # CycleDetectedError -> "Cycle detected"
        words = []
        for char in type(error).__name__.replace("Error", ""):
            if char.isupper() and words:
                words.append(" ")
            words.append(char.lower() if words else char)
        ErrorFormatter.print_error("".join(words), str(error))
        sys.exit(1)

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        ErrorFormatter.print_error("Error: File not found", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates project paths and directories."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that project directory exists and is a directory.

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not project_dir.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path does not exist: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
        if not project_dir.is_dir():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path is not a directory: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
