"""Icon registry and resolvers."""

from marpdeck.icons.registry import IconDefaults, IconRegistry, IconSource
from marpdeck.icons.resolver import IconResolver, RegistryIconResolver, process_svg

__all__ = [
    "IconDefaults",
    "IconRegistry",
    "IconResolver",
    "IconSource",
    "RegistryIconResolver",
    "process_svg",
]
