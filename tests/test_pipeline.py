"""End-to-end tests: requirement text to a validated project graph."""

import logging

import pytest


class TestCompileRequirements:
    def test_sensor_ems_scenario(self, sensor_ems_text):
        from swcforge import compile_requirements

        report = compile_requirements(sensor_ems_text)

        assert report.validation.is_valid
        assert report.counts == {
            "requirements": 1,
            "swcs": 2,
            "interfaces": 1,
            "data_elements": 1,
            "ports": 2,
            "runnables": 4,
            "access_points": 2,
            "ecu_compositions": 1,
        }
        assert report.graph.counts()["swc_instances"] == 2
        assert report.mutation.operation == "integrate"

    def test_summary(self, sensor_ems_text):
        from swcforge import compile_requirements

        report = compile_requirements(sensor_ems_text)

        assert report.summary() == (
            "Generated 2 SWCs, 1 interfaces, 2 ports, 4 runnables and "
            "2 access points from 1 requirements"
        )

    def test_empty_text(self):
        from swcforge import compile_requirements

        report = compile_requirements("")

        assert report.requirements == []
        assert report.artifacts.is_empty()
        assert report.graph.counts()["swcs"] == 0
        assert report.validation.is_valid

    def test_none_text(self):
        from swcforge import compile_requirements

        with pytest.raises(TypeError):
            compile_requirements(None)

    def test_existing_graph_extended(self, sensor_ems_text):
        from swcforge import ProjectGraph, compile_requirements

        graph = ProjectGraph(name="Vehicle")
        compile_requirements(sensor_ems_text, graph=graph)
        report = compile_requirements(
            "The wiper_swc shall receive the rain signal.", graph=graph
        )

        assert report.graph is graph
        assert graph.counts()["swcs"] == 3
        assert graph.find_swc_by_name("wiper_swc") is not None
        assert graph.validate().is_valid

    def test_project_config(self, sensor_ems_text):
        from swcforge import compile_requirements
        from swcforge.config import DEFAULT_CONFIG, merge_configs

        config = merge_configs(
            DEFAULT_CONFIG,
            {"project": {"name": "Powertrain"}, "synthesis": {"default_ecu_name": "EngineECU"}},
        )

        report = compile_requirements(sensor_ems_text, config=config)

        assert report.graph.name == "Powertrain"
        assert report.graph.find_ecu_composition_by_name("EngineECUComposition") is not None

    def test_info_logged(self, sensor_ems_text, caplog):
        from swcforge import compile_requirements

        with caplog.at_level(logging.INFO, logger="swcforge"):
            compile_requirements(sensor_ems_text)

        assert "Generated 2 SWCs" in caplog.text
