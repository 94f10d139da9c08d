"""
swcforge.core.naming - Canonical naming rules for model elements.

Every comparison between component names goes through the functions in
this module so that the extractor, the synthesizer and the integrity
engine agree on which spellings denote the same component.

Naming scheme:
- Components: <name>_swc or <Name>Controller
- Port interfaces: <firstBase>_<secondBase>_portinterface
- Ports: <base>_ProvidedPort / <base>_RequiredPort
- Runnables: <component>_init, <component>_<period><unit>,
  <component>_Event, <component>_main
- Access points: Rte_<IWrite|IRead>_<runnable>_<port>_<element>
"""

from __future__ import annotations

import re
from typing import Optional

from swcforge.core.models import RunnableType, Timing, TimingType

SWC_SUFFIX = "_swc"
CONTROLLER_SUFFIX = "Controller"
PORT_INTERFACE_SUFFIX = "_portinterface"
INTERFACE_SUFFIX = "Interface"

_CONTROLLER_RE = re.compile("controller", re.IGNORECASE)


def _split_suffix(name: str) -> tuple[str, Optional[str]]:
    """Split a component name into (base, canonical suffix or None)."""
    lower = name.lower()
    if lower.endswith(SWC_SUFFIX):
        return name[: -len(SWC_SUFFIX)], SWC_SUFFIX
    if lower.endswith(CONTROLLER_SUFFIX.lower()):
        return name[: -len(CONTROLLER_SUFFIX)], CONTROLLER_SUFFIX
    return name, None


def _upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def extracted_component_name(token: str) -> Optional[str]:
    """Canonicalize a component token found in requirement text.

    Tokens already ending in ``_swc`` or ``Controller`` keep their base
    spelling. Tokens containing "controller" elsewhere are re-cased and
    suffixed with ``Controller``. Anything else gets ``_swc``.

    Returns:
        The canonical name, or None if nothing is left of the token.
    """
    base, suffix = _split_suffix(token)
    if suffix == SWC_SUFFIX:
        return f"{base}{SWC_SUFFIX}" if base else None
    if suffix == CONTROLLER_SUFFIX:
        return f"{_upper_first(base)}{CONTROLLER_SUFFIX}" if base else None
    if _CONTROLLER_RE.search(token):
        base = _CONTROLLER_RE.sub("", token).strip("_")
        return f"{_upper_first(base)}{CONTROLLER_SUFFIX}" if base else None
    return f"{token}{SWC_SUFFIX}"


def component_name(name: str) -> str:
    """Canonical component name used by the synthesizer.

    Names ending in ``_swc`` or ``Controller`` are kept (suffix re-cased);
    anything else is suffixed with ``Controller``.
    """
    base, suffix = _split_suffix(name)
    if suffix == SWC_SUFFIX:
        return f"{base}{SWC_SUFFIX}"
    if suffix == CONTROLLER_SUFFIX:
        return f"{_upper_first(base)}{CONTROLLER_SUFFIX}"
    return f"{name}{CONTROLLER_SUFFIX}"


def component_key(name: str) -> str:
    """Comparison key for component names (case and suffix normalized)."""
    return component_name(name).lower()


def component_base(name: str) -> str:
    """Strip the ``_swc`` / ``Controller`` suffix from a component name."""
    base, _ = _split_suffix(name)
    return base


def name_key(name: str) -> str:
    """Comparison key for non-component names."""
    return name.lower()


def port_interface_name(first_component: str, second_component: str) -> str:
    """Interface name for a link between two components."""
    return (
        f"{component_base(first_component)}_{component_base(second_component)}"
        f"{PORT_INTERFACE_SUFFIX}"
    )


def interface_name(token: str) -> str:
    """Normalize a free-text interface token to end in ``Interface``."""
    if token.lower().endswith(PORT_INTERFACE_SUFFIX):
        return token
    if token.lower().endswith(INTERFACE_SUFFIX.lower()):
        token = token[: -len(INTERFACE_SUFFIX)]
    return f"{token.capitalize()}{INTERFACE_SUFFIX}"


def provided_port_name(component: str) -> str:
    return f"{component_base(component)}_ProvidedPort"


def required_port_name(component: str) -> str:
    return f"{component_base(component)}_RequiredPort"


def init_runnable_name(component: str) -> str:
    return f"{component}_init"


def periodic_runnable_name(component: str, period: int, unit: str) -> str:
    """Runnable name carrying the period as written (``sensor_swc_10ms``)."""
    return f"{component}_{period}{unit}"


def event_runnable_name(component: str) -> str:
    return f"{component}_Event"


def main_runnable_name(component: str) -> str:
    return f"{component}_main"


def main_runnable(
    component: str, timing: Optional[Timing], default_period_ms: int = 100
) -> tuple[str, RunnableType, int]:
    """Name, type and period (ms) of a component's timing-driven runnable.

    Periodic timing keeps the period as written in the name and converts
    seconds to milliseconds for the period. Event timing gives a
    zero-period event runnable. Anything else gives a periodic
    ``_main`` runnable at ``default_period_ms``.
    """
    if timing is not None and timing.type == TimingType.PERIODIC and timing.period:
        unit = timing.unit or "ms"
        return (
            periodic_runnable_name(component, timing.period, unit),
            RunnableType.PERIODIC,
            timing.period_ms or timing.period,
        )
    if timing is not None and timing.type == TimingType.EVENT:
        return event_runnable_name(component), RunnableType.EVENT, 0
    return main_runnable_name(component), RunnableType.PERIODIC, default_period_ms


def access_point_name(provided: bool, runnable: str, port: str, element: str) -> str:
    """Access point name: ``Rte_IWrite_...`` for provided ports, else ``Rte_IRead_...``."""
    prefix = "Rte_IWrite" if provided else "Rte_IRead"
    return f"{prefix}_{runnable}_{port}_{element}"


def instance_name(component: str) -> str:
    return f"{component}Instance"


def composition_name(ecu_name: str) -> str:
    return f"{ecu_name}Composition"
