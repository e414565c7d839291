"""Modular pieces for the programmatic OpenAPI builder.

Registries live in `constants`, path fragment builders in `paths`.
"""

__all__ = [
    "constants",
    "paths",
]
