"""Built-in template pack: one Jinja2 template per platform.

Each platform profile names its template file, the kinds it can emit, the
props its idiom has no way to express, and any compliance levels its
primitives guarantee natively. :func:`register_builtin_templates` turns
every (kind, platform) pair into a :class:`TemplateDefinition` whose render
function feeds the supported props through the platform's template.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from omnigen.catalog import SIZE_HEIGHTS, KindCatalog
from omnigen.models import ComponentSpec, PropValue
from omnigen.templates.registry import RenderFn, TemplateDefinition, TemplateRegistry
from omnigen.templates.renderer import TemplateRenderer
from omnigen.utils import pascal_case


# Height used when a kind has no size prop (or the platform dropped it).
DEFAULT_HEIGHT = 48

ALL_KINDS = ["button", "input", "card", "payment-form"]


class PlatformProfile(BaseModel):
    """Static description of one target platform."""

    platform: str = Field(..., description="Platform id, e.g. 'react'")
    template: str = Field(..., description="Template file under templates/jinja/")
    file_extension: str = Field(..., description="Extension of generated files")
    kinds: list[str] = Field(default_factory=lambda: list(ALL_KINDS))
    unsupported_props: list[str] = Field(
        default_factory=list, description="Props this platform cannot express"
    )
    native_tags: list[str] = Field(
        default_factory=list,
        description="Compliance levels the platform's primitives provide natively",
    )
    description: str = Field(default="")


PLATFORM_PROFILES: list[PlatformProfile] = [
    PlatformProfile(
        platform="react",
        template="react.tsx.j2",
        file_extension=".tsx",
        description="React 19 function components with forwardRef",
    ),
    PlatformProfile(
        platform="react-native",
        template="react_native.tsx.j2",
        file_extension=".native.tsx",
        kinds=["button", "input", "card"],
        unsupported_props=["href", "allow_html"],
        description="React Native core components",
    ),
    PlatformProfile(
        platform="vue",
        template="vue.vue.j2",
        file_extension=".vue",
        description="Vue 3 single-file components with <script setup>",
    ),
    PlatformProfile(
        platform="angular",
        template="angular.ts.j2",
        file_extension=".component.ts",
        description="Angular standalone components",
    ),
    PlatformProfile(
        platform="svelte",
        template="svelte.svelte.j2",
        file_extension=".svelte",
        description="Svelte components",
    ),
    PlatformProfile(
        platform="vanilla",
        template="vanilla.js.j2",
        file_extension=".js",
        unsupported_props=["loading"],
        description="Framework-free custom elements",
    ),
    PlatformProfile(
        platform="radix",
        template="radix.tsx.j2",
        file_extension=".radix.tsx",
        native_tags=["a11y:aaa"],
        description="Radix UI primitives",
    ),
    PlatformProfile(
        platform="headless-ui",
        template="headless_ui.tsx.j2",
        file_extension=".headless.tsx",
        kinds=["button", "input", "payment-form"],
        unsupported_props=["allow_html"],
        native_tags=["a11y:aa"],
        description="Headless UI components",
    ),
]


def get_profile(platform: str) -> Optional[PlatformProfile]:
    for profile in PLATFORM_PROFILES:
        if profile.platform == platform:
            return profile
    return None


def build_context(
    platform: str, props: dict[str, PropValue], spec: ComponentSpec
) -> dict[str, Any]:
    """Variables handed to every platform template."""
    size = props.get("size")
    height = SIZE_HEIGHTS.get(size, DEFAULT_HEIGHT) if isinstance(size, str) else DEFAULT_HEIGHT
    return {
        "platform": platform,
        "kind": spec.kind,
        "component_name": pascal_case(spec.kind),
        "element_name": f"omni-{spec.kind}",
        "props": dict(props),
        "height": height,
        "tags": sorted(spec.compliance_tags),
    }


def make_render_fn(renderer: TemplateRenderer, profile: PlatformProfile) -> RenderFn:
    def render(props: dict[str, PropValue], spec: ComponentSpec) -> str:
        return renderer.render(profile.template, build_context(profile.platform, props, spec))

    return render


def register_builtin_templates(
    registry: TemplateRegistry,
    catalog: KindCatalog,
    renderer: Optional[TemplateRenderer] = None,
) -> int:
    """Register every built-in (kind, platform) template.

    Kinds a profile lists but the catalog does not know are skipped.

    Returns:
        Number of definitions registered.
    """
    renderer = renderer or TemplateRenderer()
    count = 0
    for profile in PLATFORM_PROFILES:
        render = make_render_fn(renderer, profile)
        for kind in profile.kinds:
            definition = catalog.get(kind)
            if definition is None:
                continue
            supported = frozenset(
                p.name for p in definition.props if p.name not in profile.unsupported_props
            )
            registry.register(
                TemplateDefinition(
                    kind=kind,
                    platform=profile.platform,
                    render=render,
                    supported_props=supported,
                    native_tags=frozenset(profile.native_tags),
                    file_extension=profile.file_extension,
                    description=profile.description,
                )
            )
            count += 1
    return count
