"""Application wiring for the MAC address resolver.

Contains:
- ResolverDependencies / create_resolver: platform collaborator selection
- cli: the ``macresolver`` command
"""

from app.dependencies import (
    ResolverDependencies,
    create_dependencies,
    create_network_profile,
    create_resolver,
)

__all__ = [
    "ResolverDependencies",
    "create_dependencies",
    "create_network_profile",
    "create_resolver",
]
