"""Renderers: annotators that define how a row is displayed on the client.

A renderer writes the fields the client template reads. Swapping renderers can
change the shape of every representation, so the engine resends the whole
window whenever the renderer changes.
"""

from datetime import date, datetime
from typing import Any, Callable

import structlog
from pydantic import BaseModel

from windowsync.models.artifacts import RefArtifact, TextArtifact
from windowsync.models.operations import Representation
from windowsync.processing.annotation_pipeline import Annotator, ItemAnnotationPipeline

log = structlog.stdlib.get_logger()

ValueProvider = Callable[[Any], Any]


def to_json_value(value: Any) -> Any:
    """
    Coerce a property value into something JSON-compatible.

    Args:
        value: Value returned by a value provider

    Returns:
        Primitive, list or dict built from the value
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_value(v) for v in value]
    return str(value)


class TextRenderer(Annotator):
    """Renders each row as a plain text label."""

    def __init__(self, value_provider: ValueProvider = str, field: str = "label"):
        """
        Initialize the text renderer.

        Args:
            value_provider: Function producing the label for an item
            field: Representation field holding the text artifact
        """
        if value_provider is None:
            raise ValueError("value_provider must not be None")
        self.value_provider = value_provider
        self.field = field

    def annotate(self, item: Any, representation: Representation) -> None:
        representation[self.field] = TextArtifact(value=str(self.value_provider(item))).to_wire()

    def __repr__(self) -> str:
        return f"TextRenderer(field={self.field!r})"


class TemplateRenderer(Annotator):
    """Renders rows through a client-side template fed by named properties."""

    def __init__(self, template: str, properties: dict[str, ValueProvider] | None = None):
        """
        Initialize the template renderer.

        Args:
            template: Opaque template markup, interpreted only by the client
            properties: Property name to value provider mapping
        """
        if template is None:
            raise ValueError("template must not be None")
        self.template = template
        self.properties: dict[str, ValueProvider] = dict(properties or {})

    @classmethod
    def of(cls, template: str) -> "TemplateRenderer":
        return cls(template)

    def with_property(self, name: str, provider: ValueProvider) -> "TemplateRenderer":
        """Add a named property and return the renderer for chaining."""
        self.properties[name] = provider
        return self

    def annotate(self, item: Any, representation: Representation) -> None:
        for name, provider in self.properties.items():
            representation[name] = to_json_value(provider(item))

    def __repr__(self) -> str:
        return f"TemplateRenderer(properties={sorted(self.properties)})"


class ComponentRenderer(Annotator):
    """Renders rows as host-owned components referenced by row key.

    The host keeps the key to component table. The renderer only asks it for
    the component id of a key and tells it when a key is no longer used.
    """

    def __init__(
        self,
        resolve_external_id: Callable[[Any, str], str],
        field: str = "artifact",
        key_field: str | None = None,
        on_release: Callable[[str], None] | None = None,
    ):
        """
        Initialize the component renderer.

        Args:
            resolve_external_id: Called with ``(item, key)``; returns the host-side
                component id for the row
            field: Representation field holding the ref artifact
            key_field: Representation field holding the row key; defaults to the
                key field of the pipeline the renderer is added to
            on_release: Called with a key when its component may be discarded
        """
        self.resolve_external_id = resolve_external_id
        self.field = field
        self.key_field = key_field
        self.on_release = on_release
        self._pipeline_key_field = "key"
        self._bound_keys: set[str] = set()

    @property
    def bound_keys(self) -> frozenset[str]:
        return frozenset(self._bound_keys)

    def bind(self, pipeline: ItemAnnotationPipeline) -> None:
        self._pipeline_key_field = pipeline.key_field

    def annotate(self, item: Any, representation: Representation) -> None:
        key = representation[self.key_field or self._pipeline_key_field]
        external_id = str(self.resolve_external_id(item, key))
        self._bound_keys.add(key)
        representation[self.field] = RefArtifact(key=key, external_id=external_id).to_wire()

    def release(self, item: Any, key: str) -> None:
        if key in self._bound_keys:
            self._bound_keys.discard(key)
            if self.on_release is not None:
                self.on_release(key)

    def reset(self) -> None:
        keys = sorted(self._bound_keys)
        self._bound_keys.clear()
        if self.on_release is not None:
            for key in keys:
                self.on_release(key)
        log.debug("component_renderer_reset", released=len(keys))

    def __repr__(self) -> str:
        return f"ComponentRenderer(field={self.field!r})"
