"""Template registry, Jinja2 renderer and the built-in platform pack.

Quick usage::

    from omnigen.catalog import default_catalog
    from omnigen.templates import TemplateRegistry, register_builtin_templates

    registry = TemplateRegistry()
    register_builtin_templates(registry, default_catalog())
    registry.freeze()
    definition = registry.lookup("button", "react")
"""

from omnigen.templates.builtin import (
    PLATFORM_PROFILES,
    PlatformProfile,
    get_profile,
    register_builtin_templates,
)
from omnigen.templates.registry import RenderFn, TemplateDefinition, TemplateRegistry
from omnigen.templates.renderer import TemplateRenderer

__all__ = [
    "PLATFORM_PROFILES",
    "PlatformProfile",
    "RenderFn",
    "TemplateDefinition",
    "TemplateRegistry",
    "TemplateRenderer",
    "get_profile",
    "register_builtin_templates",
]
