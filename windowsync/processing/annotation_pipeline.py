"""Composable annotators that turn items into wire representations."""

from typing import Any, Callable

import structlog

from windowsync.errors import AnnotatorError
from windowsync.models.operations import Representation

log = structlog.stdlib.get_logger()

AnnotatorFunction = Callable[[Any, Representation], None]


class Annotator:
    """Writes named fields of an item into its representation.

    Subclasses implement ``annotate``. ``release`` and ``reset`` let annotators
    that keep per-row state drop it when a row key is released or when the
    whole window is invalidated. An annotator removed from a pipeline is reset
    once on removal. ``bind`` is called when the annotator joins a pipeline.
    """

    def annotate(self, item: Any, representation: Representation) -> None:
        raise NotImplementedError

    def bind(self, pipeline: "ItemAnnotationPipeline") -> None:
        pass

    def release(self, item: Any, key: str) -> None:
        pass

    def reset(self) -> None:
        pass

    def __call__(self, item: Any, representation: Representation) -> None:
        self.annotate(item, representation)


class FunctionAnnotator(Annotator):
    """Adapts a plain ``(item, representation) -> None`` function."""

    def __init__(self, function: AnnotatorFunction):
        self.function = function

    def annotate(self, item: Any, representation: Representation) -> None:
        self.function(item, representation)

    def __repr__(self) -> str:
        name = getattr(self.function, "__qualname__", repr(self.function))
        return f"FunctionAnnotator({name})"


class Registration:
    """Handle returned by ``ItemAnnotationPipeline.add``; removing it twice is a no-op."""

    def __init__(self, pipeline: "ItemAnnotationPipeline", annotator: Annotator):
        self._pipeline: ItemAnnotationPipeline | None = pipeline
        self.annotator = annotator

    @property
    def active(self) -> bool:
        return self._pipeline is not None

    def remove(self) -> None:
        if self._pipeline is not None:
            pipeline, self._pipeline = self._pipeline, None
            if pipeline._discard(self.annotator):
                pipeline._changed()

    def _detach(self, pipeline: "ItemAnnotationPipeline") -> bool:
        if self._pipeline is not pipeline:
            return False
        self._pipeline = None
        return pipeline._discard(self.annotator)


class ItemAnnotationPipeline:
    """Ordered set of annotators applied to every item in registration order.

    ``on_change`` is called with no arguments after every change to the
    annotator set; the owning engine uses it to resend the whole window.
    """

    def __init__(self, key_field: str = "key"):
        """
        Initialize the pipeline.

        Args:
            key_field: Reserved representation field that holds the row key
        """
        self.key_field = key_field
        self.on_change: Callable[[], None] | None = None
        self._annotators: list[Annotator] = []

    @property
    def annotators(self) -> tuple[Annotator, ...]:
        return tuple(self._annotators)

    def add(self, annotator: Annotator | AnnotatorFunction) -> Registration:
        """
        Register an annotator after all existing ones.

        Args:
            annotator: Annotator instance or plain function

        Returns:
            Registration whose ``remove()`` unregisters the annotator

        Raises:
            TypeError: If annotator is not callable
        """
        registration = self._register(annotator)
        self._changed()
        return registration

    def replace(
        self, registration: Registration | None, annotator: Annotator | AnnotatorFunction
    ) -> Registration:
        """
        Swap a registered annotator for another as a single change.

        Args:
            registration: Registration to remove; None only adds
            annotator: Annotator to register at the end

        Returns:
            Registration of the new annotator
        """
        new_registration = self._register(annotator)
        if registration is not None:
            registration._detach(self)
        self._changed()
        return new_registration

    def _register(self, annotator: Annotator | AnnotatorFunction) -> Registration:
        if not isinstance(annotator, Annotator):
            if not callable(annotator):
                raise TypeError(f"Annotator must be callable, got {type(annotator).__name__}")
            annotator = FunctionAnnotator(annotator)

        annotator.bind(self)
        self._annotators.append(annotator)
        log.debug("annotator_registered", annotator=repr(annotator), count=len(self._annotators))
        return Registration(self, annotator)

    def _discard(self, annotator: Annotator) -> bool:
        for index, candidate in enumerate(self._annotators):
            if candidate is annotator:
                del self._annotators[index]
                annotator.reset()
                log.debug(
                    "annotator_unregistered",
                    annotator=repr(annotator),
                    count=len(self._annotators),
                )
                return True
        return False

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def annotate(self, item: Any, key: str) -> Representation:
        """
        Build the wire representation of an item.

        Args:
            item: Item to annotate
            key: Key assigned to the item

        Returns:
            Representation holding the key and every annotator's fields

        Raises:
            AnnotatorError: If any annotator raises
        """
        representation: Representation = {self.key_field: key}
        for annotator in tuple(self._annotators):
            try:
                annotator(item, representation)
            except Exception as e:
                raise AnnotatorError(annotator, item, e) from e

        # annotators must not rebind the row key
        representation[self.key_field] = key
        return representation

    def release(self, item: Any, key: str) -> None:
        """Tell every annotator that a row key has been released."""
        for annotator in tuple(self._annotators):
            try:
                annotator.release(item, key)
            except Exception as e:
                log.error(
                    "annotator_release_failed",
                    annotator=repr(annotator),
                    key=key,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    def reset(self) -> None:
        """Tell every annotator that all representations are invalid."""
        for annotator in tuple(self._annotators):
            annotator.reset()

    def __len__(self) -> int:
        return len(self._annotators)
