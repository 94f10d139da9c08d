"""Tests for MutationLog and the mutation records of ProjectGraph."""

import pytest


class TestMutationLog:
    def _entries(self, count):
        from swcforge.model import MutationEntry

        return [MutationEntry(f"op{i}", f"target{i % 2}", {}, {}) for i in range(count)]

    def test_append_and_order(self):
        from swcforge.model import MutationLog

        log = MutationLog()
        entries = self._entries(3)
        for entry in entries:
            log.append(entry)

        assert len(log) == 3
        assert list(log.iter_entries()) == entries
        assert log.last() is entries[-1]

    def test_lookups(self):
        from swcforge.model import MutationLog

        log = MutationLog()
        entries = self._entries(4)
        for entry in entries:
            log.append(entry)

        assert log.find_by_id(entries[1].id) is entries[1]
        assert log.find_by_id("nope") is None
        assert log.entries_for("target0") == [entries[0], entries[2]]
        assert log.entries_since(entries[2].id) == entries[2:]

    def test_entries_since_unknown(self):
        from swcforge.model import MutationLog

        with pytest.raises(ValueError):
            MutationLog().entries_since("missing")

    def test_clear(self):
        from swcforge.model import MutationLog

        log = MutationLog()
        log.append(self._entries(1)[0])
        log.clear()

        assert len(log) == 0
        assert log.last() is None


class TestGraphRecords:
    def test_create_records_state(self):
        from swcforge.model import ProjectGraph

        graph = ProjectGraph()
        entry = graph.create_swc("door_swc", description="Door lock")

        assert entry.operation == "create_swc"
        assert entry.before_state == {}
        assert entry.after_state["name"] == "door_swc"
        assert entry.after_state["category"] == "application"
        assert graph.mutation_log.last() is entry

    def test_update_records_changed_fields_only(self):
        from swcforge.model import ProjectGraph

        graph = ProjectGraph()
        swc_id = graph.create_swc("door_swc").target_id

        entry = graph.update_swc(swc_id, description="Door lock")

        assert entry.before_state == {"description": ""}
        assert entry.after_state == {"description": "Door lock"}
        assert graph.mutation_log.entries_for(swc_id) == [
            graph.mutation_log.find_by_id(e.id) for e in graph.mutation_log.iter_entries()
        ]

    def test_unresolved_reference_text(self):
        from swcforge.model import UnresolvedReference, UnresolvedReferenceError

        error = UnresolvedReferenceError(
            [UnresolvedReference("x_ProvidedPort", "interface", "XInterface")]
        )

        assert isinstance(error, ValueError)
        assert str(error) == (
            "1 unresolved reference(s): x_ProvidedPort --[interface]--> XInterface (missing)"
        )
