"""Live model entities - Identified nodes of a ProjectGraph.

Ownership is structural: an SWC holds its ports and runnables, a runnable
holds its access points and an ECU composition holds its instances and
connectors. Every other reference is an id (or, for data types, a name)
looked up through the ProjectGraph.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from swcforge.core.models import (
    AccessMode,
    AccessType,
    InterfaceType,
    PortDirection,
    RunnableType,
    SwcCategory,
)


def new_id() -> str:
    """Fresh entity identity (uuid4 hex)."""
    return uuid4().hex


DATA_TYPE_CATEGORIES = ("primitive", "array", "record", "typedef")

_IMPLEMENTATION_CATEGORY = {
    "primitive": "VALUE",
    "array": "ARRAY",
    "record": "STRUCTURE",
    "typedef": "TYPE_REFERENCE",
}

# Platform base types: (size in bits, encoding)
BASE_TYPE_LAYOUT: dict[str, tuple[int, str]] = {
    "boolean": (8, "BOOLEAN"),
    "uint8": (8, "NONE"),
    "uint16": (16, "NONE"),
    "uint32": (32, "NONE"),
    "uint64": (64, "NONE"),
    "sint8": (8, "2C"),
    "sint16": (16, "2C"),
    "sint32": (32, "2C"),
    "sint64": (64, "2C"),
    "float32": (32, "IEEE754"),
    "float64": (64, "IEEE754"),
}


def implementation_data_type(
    name: str, category: str, base_type: Optional[str]
) -> dict[str, Any]:
    """Implementation side of a data type, derived from its category and base type.

    A data type without a base type is its own base (``uint16`` names a
    platform type). Unknown base types get no size and no encoding.
    """
    size, encoding = BASE_TYPE_LAYOUT.get((base_type or name).lower(), (None, None))
    return {
        "category": _IMPLEMENTATION_CATEGORY.get(category),
        "base_type_encoding": encoding,
        "size": size,
    }


@dataclass
class RecordElement:
    """One member of a record data type."""

    name: str
    type: str


@dataclass
class DataType:
    """A named data type. Data elements reference it by name.

    ``implementation`` is derived; the graph refreshes it when the
    category or base type changes.
    """

    name: str
    category: str = "primitive"
    base_type: Optional[str] = None
    array_size: Optional[int] = None
    elements: list[RecordElement] = field(default_factory=list)
    description: str = ""
    implementation: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if not self.implementation:
            self.refresh_implementation()

    def refresh_implementation(self) -> None:
        self.implementation = implementation_data_type(self.name, self.category, self.base_type)


@dataclass
class DataElement:
    name: str
    application_data_type_ref: str
    category: str = "VALUE"
    description: str = ""
    sw_data_def_props: dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if not self.sw_data_def_props:
            self.sw_data_def_props = {
                "base_type_ref": self.application_data_type_ref,
                "implementation_data_type_ref": self.application_data_type_ref,
            }


@dataclass
class Interface:
    name: str
    type: InterfaceType = InterfaceType.SENDER_RECEIVER
    data_elements: list[DataElement] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def find_data_element(self, name: str) -> Optional[DataElement]:
        lower = name.lower()
        for element in self.data_elements:
            if element.name.lower() == lower:
                return element
        return None


@dataclass
class Port:
    """A port on its owning SWC. ``interface_ref`` is an Interface id."""

    name: str
    direction: PortDirection
    interface_ref: str
    swc_id: str
    id: str = field(default_factory=new_id)


@dataclass
class AccessPoint:
    """RTE access of a runnable to one data element through one port.

    Attributes:
        port_ref: Port id (a port of the same SWC)
        data_element_ref: DataElement id (usually embedded in the port's interface)
    """

    name: str
    type: AccessType
    swc_id: str
    runnable_id: str
    port_ref: str
    data_element_ref: str
    access: AccessMode = AccessMode.IMPLICIT
    id: str = field(default_factory=new_id)


@dataclass
class Runnable:
    name: str
    swc_id: str
    runnable_type: RunnableType = RunnableType.PERIODIC
    period: int = 0
    can_be_invoked_concurrently: bool = False
    access_points: list[AccessPoint] = field(default_factory=list)
    id: str = field(default_factory=new_id)


@dataclass
class SWC:
    name: str
    description: str = ""
    category: SwcCategory = SwcCategory.APPLICATION
    type: str = "atomic"
    ports: list[Port] = field(default_factory=list)
    runnables: list[Runnable] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def find_port(self, name: str) -> Optional[Port]:
        lower = name.lower()
        return next((p for p in self.ports if p.name.lower() == lower), None)

    def find_runnable(self, name: str) -> Optional[Runnable]:
        lower = name.lower()
        return next((r for r in self.runnables if r.name.lower() == lower), None)


@dataclass
class SWCConnection:
    """Project-level assembly connection between two SWC ports."""

    name: str
    source_swc_id: str
    source_port_id: str
    target_swc_id: str
    target_port_id: str
    id: str = field(default_factory=new_id)


@dataclass
class SWCInstance:
    """Prototype of an SWC inside an ECU composition. ``swc_ref`` is an SWC id."""

    name: str
    swc_ref: str
    id: str = field(default_factory=new_id)


@dataclass
class ECUConnector:
    name: str
    source_instance_id: str
    source_port_id: str
    target_instance_id: str
    target_port_id: str
    id: str = field(default_factory=new_id)


@dataclass
class ECUComposition:
    name: str
    ecu_name: str
    swc_instances: list[SWCInstance] = field(default_factory=list)
    connectors: list[ECUConnector] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def find_instance(self, instance_id: str) -> Optional[SWCInstance]:
        return next((i for i in self.swc_instances if i.id == instance_id), None)


def entity_state(entity: Any) -> dict[str, Any]:
    """JSON-compatible snapshot of an entity, owned children included.

    Enums are rendered by value.
    """
    return {f.name: _plain(getattr(entity, f.name)) for f in fields(entity)}


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if hasattr(value, "__dataclass_fields__"):
        return entity_state(value)
    return value


__all__ = [
    "AccessPoint",
    "BASE_TYPE_LAYOUT",
    "DATA_TYPE_CATEGORIES",
    "DataElement",
    "DataType",
    "ECUComposition",
    "ECUConnector",
    "Interface",
    "Port",
    "RecordElement",
    "Runnable",
    "SWC",
    "SWCConnection",
    "SWCInstance",
    "entity_state",
    "implementation_data_type",
    "new_id",
]
