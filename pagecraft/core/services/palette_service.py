from __future__ import annotations

"""Palette of draggable node templates.

The palette supplies, for a template identifier, a factory producing a fresh
:class:`~pagecraft.core.models.Node`. The drag session generates the node id
first (:meth:`PaletteService.new_id`) and then calls the factory exactly once
per palette-originated drop.

Templates come from the ``palette`` configuration section (``palette.yml``)
and can be extended at runtime with :meth:`PaletteService.register_template`.
"""

from dataclasses import dataclass, field
import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set

from pagecraft.core.models import Node, NodeKind

__all__ = ["PaletteTemplate", "PaletteService", "NodeFactory"]

logger = logging.getLogger(__name__)

NodeFactory = Callable[[str], Node]


@dataclass(frozen=True)
class PaletteTemplate:
    """A draggable palette entry."""

    template_id: str
    label: str
    kind: NodeKind
    default_properties: Mapping[str, Any] = field(default_factory=dict)


class PaletteService:
    """Registry of palette templates and generator of fresh node ids.

    Parameters
    ----------
    templates : iterable of PaletteTemplate, optional
        Initial templates, in display order.
    """

    def __init__(self, templates: Iterable[PaletteTemplate] = ()) -> None:
        self._templates: Dict[str, PaletteTemplate] = {}
        self._issued_ids: Set[str] = set()
        for template in templates:
            self._templates[template.template_id] = template

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]] = None) -> "PaletteService":
        """Build the palette from the ``palette`` configuration section.

        Entries with an unknown ``kind`` are skipped with an error log.
        """
        if config is None:
            from pagecraft.config import ConfigManager
            config = ConfigManager().get_palette_config()

        templates: List[PaletteTemplate] = []
        for entry in config.get("templates", []) or []:
            try:
                templates.append(PaletteTemplate(
                    template_id=str(entry["id"]),
                    label=str(entry.get("label") or entry["id"]),
                    kind=NodeKind(entry.get("kind", "unknown")),
                    default_properties=dict(entry.get("properties") or {}),
                ))
            except (KeyError, ValueError, TypeError) as exc:
                logger.error("Skipping invalid palette template %r: %s", entry, exc)
        logger.info("Palette loaded: %d templates", len(templates))
        return cls(templates)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def templates(self) -> List[PaletteTemplate]:
        """Return templates in registration order."""
        return list(self._templates.values())

    def get(self, template_id: str) -> Optional[PaletteTemplate]:
        return self._templates.get(template_id)

    def register_template(self, template_id: str, kind: NodeKind, label: Optional[str] = None,
                          default_properties: Optional[Mapping[str, Any]] = None) -> PaletteTemplate:
        """Add (or replace) a template."""
        template = PaletteTemplate(
            template_id=template_id,
            label=label or template_id,
            kind=NodeKind(kind),
            default_properties=dict(default_properties or {}),
        )
        self._templates[template_id] = template
        return template

    def new_id(self, template_id: str) -> str:
        """Generate a node id that has never been issued by this palette."""
        while True:
            candidate = f"{template_id}-{uuid.uuid4().hex[:12]}"
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    def factory_for(self, template_id: str) -> NodeFactory:
        """Return a factory building a fresh node for ``template_id``.

        Unknown templates produce ``unknown``-kind nodes with no properties.
        """
        template = self._templates.get(template_id)
        if template is None:
            logger.warning("Unknown palette template '%s'; creating unknown node", template_id)

            def _unknown(node_id: str) -> Node:
                return Node(id=node_id, kind=NodeKind.UNKNOWN)

            return _unknown

        def _factory(node_id: str) -> Node:
            children = () if template.kind is NodeKind.CONTAINER else None
            return Node(
                id=node_id,
                kind=template.kind,
                properties=dict(template.default_properties),
                children=children,
            )

        return _factory

    def create_node(self, template_id: str) -> Node:
        """Convenience: generate an id and build the node in one call."""
        return self.factory_for(template_id)(self.new_id(template_id))
