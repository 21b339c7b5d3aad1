"""
High-level editing facade.

:class:`DiagramEditor` detects the dialect of a document and routes node and
edge edits through the registry, so callers can edit any supported diagram
through one object.
"""

import logging
from dataclasses import fields, is_dataclass
from typing import Any, Dict, Optional, Union

from .registry import DiagramKind, detect_diagram_kind, get_adapter, get_parser
from .shapes import EXTENDED_SHAPE_ALIASES, ArrowKind, is_known_shape
from .textops import DEFAULT_INDENT
from .tracer import EditTrace

logger = logging.getLogger(__name__)

OPERATIONS = (
    "add_node",
    "update_node",
    "remove_node",
    "add_edge",
    "update_edge",
    "remove_edge",
)


def _model_counts(model: Any) -> Dict[str, int]:
    """Sizes of the list and dict fields of a parsed model."""
    if not is_dataclass(model):
        return {}
    counts = {}
    for f in fields(model):
        value = getattr(model, f.name)
        if isinstance(value, (list, dict)):
            counts[f.name] = len(value)
    return counts


class DiagramEditor:
    """
    Edit diagram source text of any supported dialect.

    Example:
        >>> editor = DiagramEditor()
        >>> text = editor.add_edge("flowchart TD\\n    A --> B", "B", "C")
        >>> print(text)
        flowchart TD
            A --> B
            B --> C
    """

    def __init__(
        self,
        indent: str = DEFAULT_INDENT,
        default_shape: str = "rect",
        default_arrow: Union[ArrowKind, str] = ArrowKind.ARROW,
        kind: Optional[DiagramKind] = None,
        debug: bool = False,
    ):
        """
        Initialize the editor.

        Args:
            indent: Indentation for lines added to flowcharts
            default_shape: Shape for new flowchart nodes (internal name or
                annotation alias)
            default_arrow: Arrow for new flowchart edges
            kind: Force a dialect instead of detecting it from the header
            debug: Record an :class:`EditTrace` for every edit
        """
        known = is_known_shape(default_shape) or (
            default_shape.lower() in EXTENDED_SHAPE_ALIASES
        )
        if not known:
            raise ValueError(f"Unknown default shape: {default_shape!r}")
        if isinstance(default_arrow, str):
            resolved = ArrowKind.from_glyph(default_arrow)
            if resolved is None:
                raise ValueError(f"Unknown default arrow: {default_arrow!r}")
            default_arrow = resolved

        self.indent = indent
        self.default_shape = default_shape
        self.default_arrow = default_arrow
        self.kind = kind
        self.debug = debug
        self._trace: Optional[EditTrace] = None

    def detect(self, text: str) -> DiagramKind:
        return self.kind or detect_diagram_kind(text)

    def parse(self, text: str) -> Any:
        """Parse text with its dialect's parser; None for unsupported dialects."""
        kind = self.detect(text)
        parser = get_parser(kind)
        if parser is None:
            logger.debug("No parser for %s", kind.value)
            return None
        return parser(text)

    def get_trace(self) -> Optional[EditTrace]:
        """Trace of the most recent traced edit, or None."""
        return self._trace

    def add_node(
        self,
        text: str,
        node_id: Optional[str] = None,
        label: Optional[str] = None,
        **opts,
    ) -> str:
        return self.apply(text, "add_node", node_id, label, **opts)

    def update_node(self, text: str, node_id: str, label: Optional[str], **opts) -> str:
        return self.apply(text, "update_node", node_id, label, **opts)

    def remove_node(self, text: str, node_id: str, **opts) -> str:
        return self.apply(text, "remove_node", node_id, **opts)

    def add_edge(
        self, text: str, source: str, target: str, label: str = "", **opts
    ) -> str:
        return self.apply(text, "add_edge", source, target, label, **opts)

    def update_edge(
        self, text: str, source: str, target: str, label: Optional[str], **opts
    ) -> str:
        return self.apply(text, "update_edge", source, target, label, **opts)

    def remove_edge(self, text: str, source: str, target: str, **opts) -> str:
        return self.apply(text, "remove_edge", source, target, **opts)

    def _with_defaults(self, kind: DiagramKind, operation: str, opts: dict) -> dict:
        opts = dict(opts)
        if kind is not DiagramKind.FLOWCHART:
            return opts
        if operation == "add_node":
            opts.setdefault("shape", self.default_shape)
            opts.setdefault("indent", self.indent)
        elif operation == "add_edge":
            opts.setdefault("arrow", self.default_arrow)
            opts.setdefault("indent", self.indent)
        return opts

    def apply(
        self, text: str, operation: str, *args, debug: Optional[bool] = None, **opts
    ) -> str:
        """
        Run one editing operation on text.

        Args:
            text: Diagram source
            operation: One of ``OPERATIONS``
            *args: Positional arguments after the text (ids, label)
            debug: Override the editor's debug setting for this call
            **opts: Dialect-specific options (shape, arrow, kind, ...)

        Returns:
            The edited text, or text unchanged when the dialect has no
            editing support or the target does not exist.

        Raises:
            ValueError: If operation is not one of ``OPERATIONS``.
        """
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown operation: {operation!r}")

        kind = self.detect(text)
        adapter = get_adapter(kind)
        traced = self.debug if debug is None else debug

        trace = None
        if traced:
            trace = EditTrace(input_text=text, kind=kind.value)
            self._trace = trace
            model = adapter.parse(text) if adapter else None
            data = {"kind": kind.value, "editable": adapter is not None}
            data.update(_model_counts(model))
            trace.add_stage("parse", data, text)

        needs_id = kind is not DiagramKind.FLOWCHART and operation == "add_node"
        if adapter is None:
            logger.debug("%s is not editable; %s is a no-op", kind.value, operation)
            result = text
        elif needs_id and args[0] is None:
            logger.debug("%s needs an id for add_node", kind.value)
            result = text
        else:
            opts = self._with_defaults(kind, operation, opts)
            result = getattr(adapter, operation)(text, *args, **opts)

        if trace is not None:
            trace.add_stage(
                "mutate",
                {"operation": operation, "args": args, "options": opts},
            )
            edits = trace.record_diff(text, result, operation)
            trace.add_stage(
                "result", {"changed": result != text, "line_edits": len(edits)}, result
            )
        return result
