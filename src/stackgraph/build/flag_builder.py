"""Compilation Flag Builder.

This module turns a target's compiler settings into command-line flags.

Design:
    - Language standard comes from the package-wide setting
    - Defines come from the target's CSettings (NAME or NAME=VALUE)
    - Include flags come from HeaderVisibilityResolver.include_dirs, so only
      the target's own search paths and its dependencies' public dirs appear
    - Unsafe flags are appended verbatim, last
"""

import shlex
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..config.descriptor import Target

CXX_SUFFIXES = {".cc", ".cpp", ".cxx", ".mm"}


class FlagBuilder:
    """Builds compilation flags for one target.

    Example:
        builder = FlagBuilder(target, include_dirs, c_standard="gnu17")
        flags = builder.build_flags()
    """

    def __init__(
        self,
        target: Target,
        include_dirs: Sequence[Path],
        c_standard: Optional[str] = None,
        cxx_standard: Optional[str] = None,
    ):
        """Initialize flag builder.

        Args:
            target: Target being compiled
            include_dirs: Header search directories for this target
            c_standard: C language standard (e.g., "gnu17")
            cxx_standard: C++ language standard (e.g., "c++17")
        """
        self.target = target
        self.include_dirs = list(include_dirs)
        self.c_standard = c_standard
        self.cxx_standard = cxx_standard

    @staticmethod
    def parse_flag_string(flag_string: str) -> List[str]:
        """Parse a flag string that may contain quoted values.

        Example:
            >>> FlagBuilder.parse_flag_string('-DFOO="bar baz" -DTEST')
            ['-DFOO=bar baz', '-DTEST']
        """
        try:
            return shlex.split(flag_string)
        except ValueError:
            return flag_string.split()

    def build_flags(self) -> Dict[str, List[str]]:
        """Build compilation flags.

        Returns:
            Dictionary with 'common', 'cflags' and 'cxxflags' keys
        """
        flags: Dict[str, List[str]] = {
            'common': [],
            'cflags': [],
            'cxxflags': [],
        }

        if self.c_standard:
            flags['cflags'].append(f'-std={self.c_standard}')
        if self.cxx_standard:
            flags['cxxflags'].append(f'-std={self.cxx_standard}')

        for define in self.target.c_settings.defines:
            flags['common'].append(f'-D{define}')

        for include_dir in self.include_dirs:
            flags['common'].append(f"-I{str(include_dir).replace(chr(92), '/')}")

        for flag in self.target.c_settings.unsafe_flags:
            flags['common'].extend(self.parse_flag_string(flag))

        return flags
