"""Model module - The live project graph and its integrity rules.

Exports:
- ProjectGraph: Identified model with integrate/validate/CRUD/cascades
- Entities: SWC, Port, Interface, DataType, RecordElement, DataElement, Runnable,
  AccessPoint, SWCConnection, ECUComposition, SWCInstance, ECUConnector
- MutationEntry, MutationLog: Mutation history
- UnresolvedReference, UnresolvedReferenceError: Resolution failures
- IntegrityViolation, ValidationResult, validate_project: Validation
- serialize_project, to_json, ProjectValidationError: Export
"""

from swcforge.model.entities import (
    SWC,
    AccessPoint,
    DataElement,
    DataType,
    ECUComposition,
    ECUConnector,
    Interface,
    Port,
    RecordElement,
    Runnable,
    SWCConnection,
    SWCInstance,
)
from swcforge.model.mutations import (
    MutationEntry,
    MutationLog,
    UnresolvedReference,
    UnresolvedReferenceError,
)
from swcforge.model.project import ProjectGraph
from swcforge.model.serialize import ProjectValidationError, serialize_project, to_json
from swcforge.model.validation import IntegrityViolation, ValidationResult, validate_project

__all__ = [
    "AccessPoint",
    "DataElement",
    "DataType",
    "ECUComposition",
    "ECUConnector",
    "IntegrityViolation",
    "Interface",
    "MutationEntry",
    "MutationLog",
    "Port",
    "ProjectGraph",
    "ProjectValidationError",
    "RecordElement",
    "Runnable",
    "SWC",
    "SWCConnection",
    "SWCInstance",
    "UnresolvedReference",
    "UnresolvedReferenceError",
    "ValidationResult",
    "serialize_project",
    "to_json",
    "validate_project",
]
