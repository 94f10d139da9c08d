"""
swcforge.core - Requirement models and naming rules.
"""

from swcforge.core.models import (
    AccessMode,
    AccessType,
    Communication,
    DataElementSpec,
    DerivedElements,
    Direction,
    EcuBehavior,
    InterfaceType,
    PortDirection,
    Priority,
    RequirementCategory,
    RequirementDocument,
    RunnableType,
    SwcCategory,
    Timing,
    TimingType,
)

__all__ = [
    "AccessMode",
    "AccessType",
    "Communication",
    "DataElementSpec",
    "DerivedElements",
    "Direction",
    "EcuBehavior",
    "InterfaceType",
    "PortDirection",
    "Priority",
    "RequirementCategory",
    "RequirementDocument",
    "RunnableType",
    "SwcCategory",
    "Timing",
    "TimingType",
]
