"""
swcforge.core.models - Data models for parsed requirements.

Provides the enums shared across the compiler and the immutable
RequirementDocument record produced by the extractor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RequirementCategory(Enum):
    """Requirement classification derived from keywords."""

    FUNCTIONAL = "FUNCTIONAL"
    NON_FUNCTIONAL = "NON_FUNCTIONAL"
    INTERFACE = "INTERFACE"
    CONSTRAINT = "CONSTRAINT"


class Priority(Enum):
    """Requirement priority derived from keywords."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class InterfaceType(Enum):
    """Kinds of AUTOSAR port interfaces."""

    SENDER_RECEIVER = "SenderReceiver"
    CLIENT_SERVER = "ClientServer"
    MODE_SWITCH = "ModeSwitch"
    PARAMETER = "Parameter"
    TRIGGER = "Trigger"


class Direction(Enum):
    """Communication direction of a requirement."""

    SENDER = "sender"
    RECEIVER = "receiver"
    BOTH = "both"


class TimingType(Enum):
    """How a requirement's behavior is activated."""

    PERIODIC = "periodic"
    EVENT = "event"
    INIT = "init"


class SwcCategory(Enum):
    """Software component categories."""

    APPLICATION = "application"
    SERVICE = "service"
    ECU_ABSTRACTION = "ecu-abstraction"
    COMPLEX_DRIVER = "complex-driver"
    SENSOR_ACTUATOR = "sensor-actuator"


class PortDirection(Enum):
    """Port direction on a component."""

    PROVIDED = "provided"
    REQUIRED = "required"


class RunnableType(Enum):
    """Runnable scheduling kind."""

    INIT = "init"
    PERIODIC = "periodic"
    EVENT = "event"


class AccessType(Enum):
    """Access point kinds."""

    IREAD = "iRead"
    IWRITE = "iWrite"
    ICALL = "iCall"


class AccessMode(Enum):
    """Implicit (buffered) or explicit RTE access."""

    IMPLICIT = "implicit"
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class DataElementSpec:
    """A data element named in requirement text.

    Attributes:
        name: Title-cased element name (e.g., "Temperature")
        type: Base type name (e.g., "uint16")
        category: AUTOSAR category, "VALUE" for scalars
    """

    name: str
    type: str
    category: Optional[str] = "VALUE"


@dataclass(frozen=True)
class Communication:
    """Communication shape of a requirement."""

    interface_type: InterfaceType = InterfaceType.SENDER_RECEIVER
    direction: Optional[Direction] = None
    data_elements: tuple[DataElementSpec, ...] = ()


@dataclass(frozen=True)
class Timing:
    """Activation timing. ``period`` and ``unit`` are set for periodic timing only."""

    type: TimingType
    period: Optional[int] = None
    unit: Optional[str] = None

    @property
    def period_ms(self) -> Optional[int]:
        """Period converted to milliseconds."""
        if self.period is None:
            return None
        return self.period * 1000 if self.unit == "s" else self.period


@dataclass(frozen=True)
class EcuBehavior:
    """ECU deployment hint: the ECU name and the components it hosts."""

    ecu_name: str
    swc_instances: tuple[str, ...] = ()


@dataclass(frozen=True)
class DerivedElements:
    """Candidate entity names found in one requirement, in order of first appearance."""

    swcs: tuple[str, ...] = ()
    interfaces: tuple[str, ...] = ()
    signals: tuple[str, ...] = ()
    ports: tuple[str, ...] = ()
    runnables: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        """True if no component, interface or signal was found."""
        return not (self.swcs or self.interfaces or self.signals)


@dataclass(frozen=True)
class RequirementDocument:
    """
    One parsed requirement.

    Attributes:
        id: Requirement identifier (e.g., "REQ_1")
        short_name: Display name
        description: Verbatim source text
        source: Where the requirement came from (e.g., "parsed")
        category: Keyword-derived classification
        priority: Keyword-derived priority
        derived_elements: Candidate component/interface/signal names
        communication: Interface type, direction and data elements
        timing: Periodic/event/init activation
        ecu_behavior: ECU deployment hint
    """

    id: str
    short_name: str
    description: str
    source: str = "parsed"
    category: RequirementCategory = RequirementCategory.FUNCTIONAL
    priority: Priority = Priority.MEDIUM
    derived_elements: DerivedElements = field(default_factory=DerivedElements)
    communication: Optional[Communication] = None
    timing: Optional[Timing] = None
    ecu_behavior: Optional[EcuBehavior] = None

    def __str__(self) -> str:
        return f"{self.id}: {self.short_name}"
