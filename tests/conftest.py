"""Pytest fixtures for swcforge tests."""

import pytest

SENSOR_EMS_TEXT = (
    "The software component sensor_swc shall send a temperature value to the software "
    "component EMS_swc using a Sender-Receiver communication model, with a transmission "
    "period of 10 milliseconds."
)


@pytest.fixture(autouse=True)
def _clear_swcforge_env(monkeypatch):
    """Keep SWCFORGE_* variables of the developer shell out of the tests."""
    import os

    for name in list(os.environ):
        if name.startswith("SWCFORGE_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sensor_ems_text():
    return SENSOR_EMS_TEXT


@pytest.fixture
def sensor_ems_requirements():
    """Requirement records of the sensor/EMS scenario."""
    from swcforge.extraction import parse_text

    return parse_text(SENSOR_EMS_TEXT)


@pytest.fixture
def sensor_ems_artifacts(sensor_ems_requirements):
    """Artifacts synthesized from the sensor/EMS scenario."""
    from swcforge.synthesis import generate_artifacts

    return generate_artifacts(sensor_ems_requirements)


@pytest.fixture
def sensor_ems_graph(sensor_ems_artifacts):
    """Project graph with the sensor/EMS scenario integrated."""
    from swcforge.model import ProjectGraph

    graph = ProjectGraph(name="SensorProject")
    graph.integrate(sensor_ems_artifacts)
    return graph


@pytest.fixture
def manual_graph():
    """Hand-built graph: two SWCs linked through one interface.

    Returns the graph and a dict of the created ids.
    """
    from swcforge.core.models import AccessType, PortDirection, RunnableType
    from swcforge.model import DataElement, ProjectGraph

    graph = ProjectGraph(name="Manual")
    ids = {}
    ids["uint16"] = graph.create_data_type("uint16", base_type="uint16").target_id
    ids["interface"] = graph.create_interface(
        "Speed_portinterface",
        data_elements=[DataElement(name="Speed", application_data_type_ref="uint16")],
    ).target_id
    ids["element"] = graph.find_interface(ids["interface"]).data_elements[0].id
    ids["catalog_element"] = graph.create_data_element("Speed", "uint16").target_id

    ids["wheel"] = graph.create_swc("wheel_swc").target_id
    ids["brake"] = graph.create_swc("brake_swc").target_id
    ids["wheel_port"] = graph.create_port(
        ids["wheel"], "wheel_ProvidedPort", PortDirection.PROVIDED, ids["interface"]
    ).target_id
    ids["brake_port"] = graph.create_port(
        ids["brake"], "brake_RequiredPort", PortDirection.REQUIRED, ids["interface"]
    ).target_id
    ids["wheel_runnable"] = graph.create_runnable(
        ids["wheel"], "wheel_swc_10ms", RunnableType.PERIODIC, 10
    ).target_id
    ids["brake_runnable"] = graph.create_runnable(
        ids["brake"], "brake_swc_10ms", RunnableType.PERIODIC, 10
    ).target_id
    ids["wheel_ap"] = graph.create_access_point(
        ids["wheel_runnable"],
        "Rte_IWrite_wheel_swc_10ms_wheel_ProvidedPort_Speed",
        AccessType.IWRITE,
        ids["wheel_port"],
        ids["element"],
    ).target_id
    ids["brake_ap"] = graph.create_access_point(
        ids["brake_runnable"],
        "Rte_IRead_brake_swc_10ms_brake_RequiredPort_Speed",
        AccessType.IREAD,
        ids["brake_port"],
        ids["element"],
    ).target_id
    ids["connection"] = graph.create_connection(
        "wheel_to_brake", ids["wheel"], ids["wheel_port"], ids["brake"], ids["brake_port"]
    ).target_id
    ids["composition"] = graph.create_ecu_composition(
        "ChassisECUComposition", "ChassisECU"
    ).target_id
    ids["wheel_instance"] = graph.create_swc_instance(
        ids["composition"], "wheel_swcInstance", ids["wheel"]
    ).target_id
    ids["brake_instance"] = graph.create_swc_instance(
        ids["composition"], "brake_swcInstance", ids["brake"]
    ).target_id
    ids["connector"] = graph.create_ecu_connector(
        ids["composition"],
        "wheel_brake_connector",
        ids["wheel_instance"],
        ids["wheel_port"],
        ids["brake_instance"],
        ids["brake_port"],
    ).target_id
    return graph, ids
