"""stackgraph - build graph descriptors for layered native stacks."""

__version__ = "0.1.0"
