"""Tests for ProjectGraph integration, lookups and CRUD."""

import threading

import pytest


class TestIntegrate:
    """integrate() of synthesized artifact sets."""

    def test_none_raises(self):
        from swcforge.model import ProjectGraph

        with pytest.raises(TypeError):
            ProjectGraph().integrate(None)

    def test_sensor_ems_graph_is_valid(self, sensor_ems_graph):
        result = sensor_ems_graph.validate()

        assert result.is_valid, result.errors

    def test_entities_resolved_to_ids(self, sensor_ems_graph):
        sensor = sensor_ems_graph.find_swc_by_name("sensor_swc")
        interface = sensor_ems_graph.find_interface_by_name("sensor_EMS_portinterface")

        [port] = sensor.ports
        assert port.swc_id == sensor.id
        assert port.interface_ref == interface.id

        runnable = sensor.find_runnable("sensor_swc_10ms")
        [access_point] = runnable.access_points
        assert access_point.port_ref == port.id
        assert access_point.runnable_id == runnable.id
        assert access_point.data_element_ref == interface.data_elements[0].id

    def test_data_types_created(self, sensor_ems_graph):
        data_type = sensor_ems_graph.find_data_type_by_name("uint16")

        assert data_type is not None
        assert (data_type.category, data_type.base_type) == ("primitive", "uint16")

    def test_composition_instances(self, sensor_ems_graph):
        [composition] = sensor_ems_graph.iter_ecu_compositions()
        sensor = sensor_ems_graph.find_swc_by_name("sensor_swc")

        assert composition.name == "SystemECUComposition"
        assert composition.swc_instances[0].swc_ref == sensor.id

    def test_counts(self, sensor_ems_graph):
        assert sensor_ems_graph.counts() == {
            "swcs": 2,
            "ports": 2,
            "interfaces": 1,
            "data_types": 1,
            "data_elements": 1,
            "runnables": 4,
            "access_points": 2,
            "connections": 0,
            "ecu_compositions": 1,
            "swc_instances": 2,
            "ecu_connectors": 0,
        }

    def test_integrate_is_idempotent(self, sensor_ems_graph, sensor_ems_artifacts):
        before = sensor_ems_graph.counts()

        entry = sensor_ems_graph.integrate(sensor_ems_artifacts)

        assert sensor_ems_graph.counts() == before
        assert all(count == 0 for count in entry.after_state["added"].values())

    def test_mutation_recorded(self, sensor_ems_graph):
        entry = sensor_ems_graph.mutation_log.last()

        assert entry.operation == "integrate"
        assert entry.target_id == sensor_ems_graph.id
        assert entry.after_state["added"]["swcs"] == 2

    def test_superset_batch_adds_only_new(self, sensor_ems_graph, sensor_ems_text):
        from swcforge.extraction import parse_text
        from swcforge.synthesis import generate_artifacts

        text = sensor_ems_text + "\nThe EMS_swc shall send the rpm signal to the gauge_swc."
        sensor_ems_graph.integrate(generate_artifacts(parse_text(text)))

        names = [s.name for s in sensor_ems_graph.iter_swcs()]
        assert names == ["sensor_swc", "EMS_swc", "gauge_swc"]
        assert sensor_ems_graph.validate().is_valid

    def test_later_batch_binds_to_existing_interface_element(self):
        """An existing interface keeps its elements; access points use its first one."""
        from swcforge.extraction import parse_text
        from swcforge.model import ProjectGraph
        from swcforge.synthesis import generate_artifacts

        graph = ProjectGraph()
        graph.integrate(generate_artifacts(parse_text("The engine_swc shall send torque data.")))
        graph.integrate(
            generate_artifacts(parse_text("The wiper_swc shall receive the rain signal."))
        )

        interface = graph.find_interface_by_name("DefaultInterface")
        wiper = graph.find_swc_by_name("wiper_swc")
        [access_point] = wiper.find_runnable("wiper_swc_main").access_points
        assert [e.name for e in interface.data_elements] == ["Torque"]
        assert access_point.data_element_ref == interface.data_elements[0].id
        assert access_point.name == "Rte_IRead_wiper_swc_main_wiper_RequiredPort_Torque"
        assert graph.validate().is_valid

    def test_unresolved_reference_leaves_graph_untouched(self):
        from swcforge.core.models import PortDirection
        from swcforge.model import ProjectGraph, UnresolvedReferenceError
        from swcforge.synthesis import ArtifactSet, PortArtifact, SwcArtifact

        graph = ProjectGraph()
        artifacts = ArtifactSet(
            swcs=[SwcArtifact(name="a_swc", description="")],
            ports=[
                PortArtifact("a_ProvidedPort", PortDirection.PROVIDED, "MissingInterface", "a_swc"),
                PortArtifact("b_RequiredPort", PortDirection.REQUIRED, "MissingInterface", "b_swc"),
            ],
        )

        with pytest.raises(UnresolvedReferenceError) as excinfo:
            graph.integrate(artifacts)

        kinds = [(ref.source, ref.kind, ref.target) for ref in excinfo.value.references]
        assert ("a_ProvidedPort", "interface", "MissingInterface") in kinds
        assert ("b_RequiredPort", "swc", "b_swc") in kinds
        assert graph.counts()["swcs"] == 0
        assert len(graph.mutation_log) == 0

    def test_unresolved_is_value_error(self):
        from swcforge.model import UnresolvedReferenceError

        assert issubclass(UnresolvedReferenceError, ValueError)


class TestLookups:
    """find_* and iter_* accessors."""

    def test_find_by_id(self, manual_graph):
        graph, ids = manual_graph

        assert graph.find_swc(ids["wheel"]).name == "wheel_swc"
        assert graph.find_port(ids["brake_port"]).name == "brake_RequiredPort"
        assert graph.find_runnable(ids["wheel_runnable"]).period == 10
        assert graph.find_access_point(ids["brake_ap"]).runnable_id == ids["brake_runnable"]
        assert graph.find_data_element(ids["element"]).name == "Speed"
        assert graph.find_data_element(ids["catalog_element"]).name == "Speed"
        assert graph.find_connection(ids["connection"]).name == "wheel_to_brake"
        assert graph.find_swc_instance(ids["wheel_instance"]).swc_ref == ids["wheel"]
        assert graph.find_ecu_connector(ids["connector"]).name == "wheel_brake_connector"

    def test_find_missing_returns_none(self, manual_graph):
        graph, _ = manual_graph

        assert graph.find_swc("nope") is None
        assert graph.find_port("nope") is None
        assert graph.find_interface_by_name("nope") is None

    def test_find_by_name(self, manual_graph):
        graph, ids = manual_graph

        assert graph.find_swc_by_name("WHEEL_SWC").id == ids["wheel"]
        assert graph.find_port_by_name(ids["wheel"], "wheel_providedport").id == ids["wheel_port"]
        assert graph.find_runnable_by_name(ids["brake"], "brake_swc_10ms").id == ids[
            "brake_runnable"
        ]
        assert graph.find_data_type_by_name("UINT16").id == ids["uint16"]
        assert graph.find_data_element_by_name("speed").id == ids["catalog_element"]
        assert graph.find_ecu_composition_by_name("ChassisECUComposition").id == ids[
            "composition"
        ]

    def test_iterators(self, manual_graph):
        graph, _ = manual_graph

        assert len(list(graph.iter_ports())) == 2
        assert len(list(graph.iter_access_points())) == 2
        assert len(list(graph.iter_data_elements())) == 1
        assert len(list(graph.iter_data_elements(include_embedded=True))) == 2
        assert len(list(graph.iter_swc_instances())) == 2
        assert len(list(graph.iter_ecu_connectors())) == 1

    def test_manual_graph_is_valid(self, manual_graph):
        graph, _ = manual_graph

        assert graph.validate().is_valid


class TestCreateErrors:
    """Conventions shared by the create_* operations."""

    def test_duplicate_swc_name(self, manual_graph):
        graph, _ = manual_graph

        with pytest.raises(ValueError, match="already exists"):
            graph.create_swc("Wheel_SWC")

    def test_none_name(self):
        from swcforge.model import ProjectGraph

        with pytest.raises(TypeError):
            ProjectGraph().create_swc(None)

    def test_duplicate_port_in_scope(self, manual_graph):
        from swcforge.core.models import PortDirection

        graph, ids = manual_graph

        with pytest.raises(ValueError):
            graph.create_port(
                ids["wheel"], "wheel_ProvidedPort", PortDirection.PROVIDED, ids["interface"]
            )

    def test_same_port_name_on_other_swc(self, manual_graph):
        """Port names are unique per owning SWC only."""
        from swcforge.core.models import PortDirection

        graph, ids = manual_graph

        entry = graph.create_port(
            ids["brake"], "wheel_ProvidedPort", PortDirection.PROVIDED, ids["interface"]
        )

        assert graph.find_port(entry.target_id).swc_id == ids["brake"]

    def test_unknown_owner(self):
        from swcforge.core.models import PortDirection
        from swcforge.model import ProjectGraph

        with pytest.raises(KeyError):
            ProjectGraph().create_port("missing", "p", PortDirection.PROVIDED, "i")

    def test_port_with_missing_interface(self, manual_graph):
        from swcforge.core.models import PortDirection
        from swcforge.model import UnresolvedReferenceError

        graph, ids = manual_graph
        before = graph.counts()

        with pytest.raises(UnresolvedReferenceError):
            graph.create_port(ids["wheel"], "extra", PortDirection.PROVIDED, "missing")
        assert graph.counts() == before

    def test_element_with_missing_type(self, manual_graph):
        from swcforge.model import UnresolvedReferenceError

        graph, _ = manual_graph

        with pytest.raises(UnresolvedReferenceError):
            graph.create_data_element("Gear", "uint8")

    def test_access_point_element_outside_port_interface(self, manual_graph):
        from swcforge.core.models import AccessType
        from swcforge.model import UnresolvedReferenceError

        graph, ids = manual_graph

        with pytest.raises(UnresolvedReferenceError) as excinfo:
            graph.create_access_point(
                ids["wheel_runnable"],
                "catalog_ap",
                AccessType.IWRITE,
                ids["wheel_port"],
                ids["catalog_element"],
            )

        assert excinfo.value.references[0].kind == "data_element"

    def test_access_point_port_of_other_swc(self, manual_graph):
        from swcforge.core.models import AccessType
        from swcforge.model import UnresolvedReferenceError

        graph, ids = manual_graph

        with pytest.raises(UnresolvedReferenceError):
            graph.create_access_point(
                ids["wheel_runnable"], "bad", AccessType.IREAD, ids["brake_port"], ids["element"]
            )

    def test_connection_with_foreign_port(self, manual_graph):
        from swcforge.model import UnresolvedReferenceError

        graph, ids = manual_graph

        with pytest.raises(UnresolvedReferenceError):
            graph.create_connection(
                "bad", ids["wheel"], ids["brake_port"], ids["brake"], ids["brake_port"]
            )

    def test_instance_of_missing_swc(self, manual_graph):
        from swcforge.model import UnresolvedReferenceError

        graph, ids = manual_graph

        with pytest.raises(UnresolvedReferenceError):
            graph.create_swc_instance(ids["composition"], "ghost", "missing")

    def test_embedded_elements_unique(self, manual_graph):
        from swcforge.model import DataElement

        graph, _ = manual_graph

        with pytest.raises(ValueError):
            graph.create_interface(
                "Twice",
                data_elements=[
                    DataElement(name="A", application_data_type_ref="uint16"),
                    DataElement(name="a", application_data_type_ref="uint16"),
                ],
            )


class TestUpdate:
    """update_* operations."""

    def test_rename_swc(self, manual_graph):
        graph, ids = manual_graph

        entry = graph.update_swc(ids["wheel"], name="front_wheel_swc", description="Front")

        assert graph.find_swc(ids["wheel"]).name == "front_wheel_swc"
        assert entry.before_state == {"name": "wheel_swc", "description": ""}
        assert entry.after_state == {"name": "front_wheel_swc", "description": "Front"}

    def test_rename_to_existing(self, manual_graph):
        graph, ids = manual_graph

        with pytest.raises(ValueError):
            graph.update_swc(ids["wheel"], name="brake_swc")

    def test_rename_to_own_name_allowed(self, manual_graph):
        graph, ids = manual_graph

        graph.update_swc(ids["wheel"], name="Wheel_swc")

        assert graph.find_swc(ids["wheel"]).name == "Wheel_swc"

    def test_unknown_field(self, manual_graph):
        graph, ids = manual_graph

        with pytest.raises(ValueError, match="Cannot update"):
            graph.update_swc(ids["wheel"], ports=[])

    def test_unknown_id(self, manual_graph):
        graph, _ = manual_graph

        with pytest.raises(KeyError):
            graph.update_runnable("missing", period=5)

    def test_update_runnable_period(self, manual_graph):
        graph, ids = manual_graph

        graph.update_runnable(ids["wheel_runnable"], period=20)

        assert graph.find_runnable(ids["wheel_runnable"]).period == 20

    def test_retarget_port(self, manual_graph):
        from swcforge.core.models import InterfaceType

        graph, ids = manual_graph
        other = graph.create_interface("Other", InterfaceType.CLIENT_SERVER).target_id

        entry = graph.update_port(ids["wheel_port"], interface_ref=other)

        assert graph.find_port(ids["wheel_port"]).interface_ref == other
        assert entry.cascaded == [ids["wheel_ap"]]
        assert graph.find_access_point(ids["wheel_ap"]) is None
        assert graph.validate().is_valid

    def test_retarget_port_to_missing_interface(self, manual_graph):
        from swcforge.model import UnresolvedReferenceError

        graph, ids = manual_graph

        with pytest.raises(UnresolvedReferenceError):
            graph.update_port(ids["wheel_port"], interface_ref="missing")

    def test_rename_data_type_rewrites_references(self, manual_graph):
        graph, ids = manual_graph

        graph.update_data_type(ids["uint16"], name="Speed_T")

        for element in graph.iter_data_elements(include_embedded=True):
            assert element.application_data_type_ref == "Speed_T"
            assert element.sw_data_def_props["base_type_ref"] == "Speed_T"
        assert graph.validate().is_valid

    def test_retype_data_element(self, manual_graph):
        graph, ids = manual_graph
        graph.create_data_type("uint32")

        graph.update_data_element(ids["catalog_element"], application_data_type_ref="uint32")

        element = graph.find_data_element(ids["catalog_element"])
        assert element.sw_data_def_props["implementation_data_type_ref"] == "uint32"

    def test_rename_instance_and_connector(self, manual_graph):
        graph, ids = manual_graph

        graph.update_swc_instance(ids["wheel_instance"], name="frontWheel")
        graph.update_ecu_connector(ids["connector"], name="front")
        graph.update_ecu_composition(ids["composition"], ecu_name="ChassisECU2")
        graph.update_connection(ids["connection"], name="w2b")
        graph.update_interface(ids["interface"], name="Speed_if")
        graph.update_access_point(ids["wheel_ap"], name="Rte_IWrite_custom")

        assert graph.find_swc_instance(ids["wheel_instance"]).name == "frontWheel"
        assert graph.find_ecu_connector(ids["connector"]).name == "front"
        assert graph.find_ecu_composition(ids["composition"]).ecu_name == "ChassisECU2"
        assert graph.find_connection(ids["connection"]).name == "w2b"
        assert graph.find_interface(ids["interface"]).name == "Speed_if"
        assert graph.find_access_point(ids["wheel_ap"]).name == "Rte_IWrite_custom"


class TestDataTypes:
    """Data type categories, shapes and the derived implementation layout."""

    def test_primitive_layout_from_base_type(self, manual_graph):
        graph, ids = manual_graph

        data_type = graph.find_data_type(ids["uint16"])

        assert data_type.implementation == {
            "category": "VALUE",
            "base_type_encoding": "NONE",
            "size": 16,
        }

    def test_name_is_its_own_base(self):
        from swcforge.model import ProjectGraph

        graph = ProjectGraph()
        data_type = graph.find_data_type(graph.create_data_type("float32").target_id)

        assert data_type.implementation["base_type_encoding"] == "IEEE754"
        assert data_type.implementation["size"] == 32

    def test_array_and_record(self):
        from swcforge.model import ProjectGraph, RecordElement

        graph = ProjectGraph()
        samples = graph.create_data_type(
            "Samples_T", category="array", base_type="sint16", array_size=8
        ).target_id
        entry = graph.create_data_type(
            "Pose_T",
            category="record",
            elements=[RecordElement("x", "float32"), RecordElement("y", "float32")],
            description="Planar pose",
        )

        array = graph.find_data_type(samples)
        assert array.array_size == 8
        assert array.implementation == {"category": "ARRAY", "base_type_encoding": "2C", "size": 16}
        assert entry.after_state["elements"] == [
            {"name": "x", "type": "float32"},
            {"name": "y", "type": "float32"},
        ]
        assert entry.after_state["implementation"]["category"] == "STRUCTURE"

    def test_unknown_base_type_has_no_layout(self):
        from swcforge.model import ProjectGraph

        graph = ProjectGraph()
        data_type = graph.find_data_type(
            graph.create_data_type("Ratio_T", category="typedef", base_type="Ratio").target_id
        )

        assert data_type.implementation == {
            "category": "TYPE_REFERENCE",
            "base_type_encoding": None,
            "size": None,
        }

    @pytest.mark.parametrize(
        "kwargs",
        [{"category": "union"}, {"category": "array", "array_size": 0}],
    )
    def test_bad_shape_rejected(self, kwargs):
        from swcforge.model import ProjectGraph

        graph = ProjectGraph()

        with pytest.raises(ValueError):
            graph.create_data_type("Bad_T", **kwargs)

        assert graph.counts()["data_types"] == 0

    def test_update_checks_category_and_refreshes_layout(self, manual_graph):
        graph, ids = manual_graph
        log_size = len(graph.mutation_log)

        with pytest.raises(ValueError, match="Unknown data type category: enum"):
            graph.update_data_type(ids["uint16"], category="enum")
        assert len(graph.mutation_log) == log_size

        graph.update_data_type(ids["uint16"], base_type="uint32")

        data_type = graph.find_data_type(ids["uint16"])
        assert data_type.category == "primitive"
        assert data_type.implementation["size"] == 32


class TestLocking:
    """Concurrent writers serialize on the graph lock."""

    def test_parallel_creates(self):
        from swcforge.model import ProjectGraph

        graph = ProjectGraph()

        def worker(offset):
            for i in range(50):
                graph.create_swc(f"c{offset}_{i}_swc")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert graph.counts()["swcs"] == 200
        assert len(graph.mutation_log) == 200
