"""Descriptor model and parsing modules for stackgraph."""

from .descriptor import (
    CSettings,
    PackageDescriptor,
    PlatformConstraint,
    Product,
    Target,
    VariantConfig,
)
from .descriptor_loader import DescriptorLoader, load_descriptor
from .gnome_stack import gnome_descriptor
from .versions import format_version, parse_version

__all__ = [
    "CSettings",
    "PackageDescriptor",
    "PlatformConstraint",
    "Product",
    "Target",
    "VariantConfig",
    "DescriptorLoader",
    "load_descriptor",
    "gnome_descriptor",
    "parse_version",
    "format_version",
]
