"""Item annotation: turning provider items into wire representations"""

from windowsync.processing.annotation_pipeline import (
    Annotator,
    FunctionAnnotator,
    ItemAnnotationPipeline,
    Registration,
)
from windowsync.processing.renderers import ComponentRenderer, TemplateRenderer, TextRenderer

__all__ = [
    "Annotator",
    "FunctionAnnotator",
    "ItemAnnotationPipeline",
    "Registration",
    "TextRenderer",
    "TemplateRenderer",
    "ComponentRenderer",
]
