"""
Tests for ScanPlanner trigger handling.
"""

import pytest

from todo_tree.exceptions import ResolutionError
from todo_tree.models.scan import FileScan, FolderScan, Trigger
from todo_tree.sync.planner import ScanPlanner, is_within
from tests.fixtures.fake_scanner import FAKE_RG


class TestScanPlanner:
    """Test suite for scan planning."""

    @pytest.fixture
    def planner(self):
        return ScanPlanner(locator=lambda: FAKE_RG)

    def test_startup_scans_root_folder(self, planner):
        plan = planner.plan(Trigger.startup(), root_folder="/ws")

        assert plan.clear_aggregate
        assert plan.replace_queue
        assert plan.units == [FolderScan(path="/ws")]
        assert plan.executable == FAKE_RG
        assert plan.root_folder == "/ws"

    def test_full_refresh_adds_out_of_root_documents_first(self, planner):
        """Open documents outside the root get file units ahead of the folder."""
        plan = planner.plan(
            Trigger.full_refresh(),
            root_folder="/ws",
            open_documents=["/ws/src/main.py", "/tmp/notes.txt", "/home/me/todo.md"]
        )

        assert plan.units == [
            FileScan(path="/tmp/notes.txt"),
            FileScan(path="/home/me/todo.md"),
            FolderScan(path="/ws"),
        ]

    def test_sibling_prefix_is_out_of_root(self, planner):
        plan = planner.plan(
            Trigger.startup(),
            root_folder="/ws",
            open_documents=["/ws-other/a.py"]
        )

        assert FileScan(path="/ws-other/a.py") in plan.units

    def test_unset_root_scans_only_open_documents(self, planner):
        plan = planner.plan(Trigger.startup(), root_folder=None, open_documents=["/tmp/a.txt"])

        assert plan.clear_aggregate
        assert plan.units == [FileScan(path="/tmp/a.txt")]
        assert plan.root_folder is None

    def test_file_saved_removes_and_rescans_file(self, planner):
        plan = planner.plan(Trigger.file_saved("/ws/a.py"), root_folder="/ws")

        assert not plan.clear_aggregate
        assert not plan.replace_queue
        assert plan.remove_files == ["/ws/a.py"]
        assert plan.units == [FileScan(path="/ws/a.py")]
        assert plan.executable == FAKE_RG

    def test_only_save_and_close_are_file_scoped(self):
        assert Trigger.file_saved("/ws/a.py").is_file_scoped
        assert Trigger.file_closed("/ws/a.py").is_file_scoped
        assert not Trigger.startup().is_file_scoped
        assert not Trigger.active_editor_changed("/ws").is_file_scoped

    def test_file_closed_rescans_file(self, planner):
        plan = planner.plan(Trigger.file_closed("/tmp/scratch.txt"), root_folder="/ws")

        assert plan.remove_files == ["/tmp/scratch.txt"]
        assert plan.units == [FileScan(path="/tmp/scratch.txt")]

    def test_config_change_without_pattern_change_reprojects(self):
        """A non-pattern config change never resolves or enqueues."""
        calls = []

        def locator():
            calls.append(1)
            return FAKE_RG

        plan = ScanPlanner(locator).plan(Trigger.config_changed(), root_folder="/ws")

        assert plan.reproject_only
        assert plan.units == []
        assert not plan.clear_aggregate
        assert calls == []

    def test_config_change_with_pattern_change_rescans(self, planner):
        plan = planner.plan(Trigger.config_changed(), root_folder="/ws", pattern_changed=True)

        assert plan.clear_aggregate
        assert plan.units == [FolderScan(path="/ws")]

    def test_active_editor_same_workspace_is_noop(self, planner):
        plan = planner.plan(
            Trigger.active_editor_changed("/ws"),
            root_folder="/ws",
            last_root_folder="/ws"
        )

        assert plan.is_noop
        assert "no-op" in str(plan)

    def test_active_editor_new_workspace_rescans(self, planner):
        plan = planner.plan(
            Trigger.active_editor_changed("/other"),
            root_folder="/other",
            last_root_folder="/ws"
        )

        assert plan.clear_aggregate
        assert plan.units == [FolderScan(path="/other")]

    def test_active_editor_outside_workspace_rescans(self, planner):
        plan = planner.plan(
            Trigger.active_editor_changed(None),
            root_folder="/ws",
            last_root_folder="/ws"
        )

        assert plan.clear_aggregate

    def test_missing_executable_raises_before_planning_units(self):
        planner = ScanPlanner(locator=lambda: None)

        with pytest.raises(ResolutionError):
            planner.plan(Trigger.startup(), root_folder="/ws")
        with pytest.raises(ResolutionError):
            planner.plan(Trigger.file_saved("/ws/a.py"), root_folder="/ws")

    def test_file_trigger_requires_path(self, planner):
        trigger = Trigger.file_saved("/ws/a.py").model_copy(update={"path": None})

        with pytest.raises(ValueError):
            planner.plan(trigger, root_folder="/ws")


class TestIsWithin:
    """Test suite for the root containment check."""

    def test_inside(self):
        assert is_within("/ws/src/a.py", "/ws")

    def test_folder_itself(self):
        assert is_within("/ws", "/ws")

    def test_shared_prefix_is_outside(self):
        assert not is_within("/ws2/a.py", "/ws")

    def test_unrelated(self):
        assert not is_within("/tmp/a.py", "/ws")
