"""Project serialization - Export a ProjectGraph for the export collaborator.

The export is a JSON-compatible dict of the whole graph. It is refused
while the graph violates any invariant.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from swcforge.model.entities import entity_state

if TYPE_CHECKING:
    from swcforge.model.project import ProjectGraph


class ProjectValidationError(Exception):
    """Raised when exporting a graph that fails validation.

    Attributes:
        errors: The validation error messages, verbatim.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Project validation failed:\n" + "\n".join(self.errors))


def serialize_project(graph: ProjectGraph, require_valid: bool = True) -> dict[str, Any]:
    """Serialize a ProjectGraph to a JSON-compatible dict.

    Validation and export run under one hold of the graph lock.

    Args:
        graph: The graph to serialize.
        require_valid: Refuse to export a graph that fails validation.

    Returns:
        Dict with project metadata and one list per top-level collection.

    Raises:
        ProjectValidationError: If require_valid and validation fails.
    """

    with graph.lock:
        result = graph.validate()
        if require_valid and not result.is_valid:
            raise ProjectValidationError(result.errors)

        return {
            "id": graph.id,
            "name": graph.name,
            "autosar_version": graph.autosar_version,
            "swcs": [entity_state(swc) for swc in graph.iter_swcs()],
            "interfaces": [entity_state(i) for i in graph.iter_interfaces()],
            "data_types": [entity_state(d) for d in graph.iter_data_types()],
            "data_elements": [entity_state(e) for e in graph.iter_data_elements()],
            "connections": [entity_state(c) for c in graph.iter_connections()],
            "ecu_compositions": [entity_state(c) for c in graph.iter_ecu_compositions()],
            "counts": graph.counts(),
            "valid": result.is_valid,
        }


def to_json(graph: ProjectGraph, indent: int = 2, require_valid: bool = True) -> str:
    """Serialize a ProjectGraph to a JSON string."""
    return json.dumps(serialize_project(graph, require_valid=require_valid), indent=indent)


__all__ = ["ProjectValidationError", "serialize_project", "to_json"]
