"""
Tests for ScanExecutor draining behavior.
"""

import asyncio

import pytest

from todo_tree.exceptions import AdapterError
from todo_tree.models.config import ScanConfig
from todo_tree.models.scan import FileScan, FolderScan
from todo_tree.presentation import MatchTreeProjection
from todo_tree.reporting import RecordingReporter
from todo_tree.sync.aggregate import ResultAggregate
from todo_tree.sync.executor import ScanExecutor
from todo_tree.sync.queue import ScanUnitQueue
from tests.fixtures.fake_scanner import FAKE_RG, FakeScanner, make_match


def build_executor(scanner, config=None):
    config = config or ScanConfig(tags=["TODO", "FIXME"], globs=["!**/node_modules"])
    aggregate = ResultAggregate()
    projection = MatchTreeProjection(root_provider=lambda: "/ws")
    reporter = RecordingReporter()
    executor = ScanExecutor(
        adapter=scanner,
        aggregate=aggregate,
        projection=projection,
        reporter=reporter,
        config_provider=lambda: config
    )
    return executor, aggregate, projection, reporter


class TestScanExecutor:
    """Test suite for the scan executor."""

    @pytest.mark.asyncio
    async def test_drains_queue_and_projects_once(self):
        scanner = FakeScanner({
            "/ws": [make_match("/ws/b.py", 2), make_match("/ws/a.py", 9)],
            "/tmp/notes.txt": [make_match("/tmp/notes.txt", 1)],
        })
        executor, aggregate, projection, reporter = build_executor(scanner)
        queue = ScanUnitQueue()
        queue.extend([FileScan(path="/tmp/notes.txt"), FolderScan(path="/ws")])

        processed = await executor.run(queue, lambda: FAKE_RG)

        assert processed == 2
        assert scanner.targets == ["/ws", "/tmp/notes.txt"]
        assert projection.projection_count == 1
        assert [(m.file, m.line) for m in projection.matches] == [
            ("/tmp/notes.txt", 1), ("/ws/a.py", 9), ("/ws/b.py", 2)
        ]
        assert reporter.messages[-1] == ("status", None)
        assert queue.is_empty()

    @pytest.mark.asyncio
    async def test_options_come_from_current_config(self):
        scanner = FakeScanner()
        executor, _, _, _ = build_executor(scanner)
        queue = ScanUnitQueue()
        queue.extend([FolderScan(path="/ws"), FileScan(path="/ws/a.py")])

        await executor.run(queue, lambda: FAKE_RG)

        file_options = scanner.calls[0][1]
        folder_options = scanner.calls[1][1]
        assert file_options.restrict_to_file == "/ws/a.py"
        assert folder_options.restrict_to_file is None
        assert folder_options.pattern == "(TODO|FIXME)"
        assert folder_options.globs == ["!**/node_modules"]
        assert folder_options.executable == FAKE_RG

    @pytest.mark.asyncio
    async def test_one_invocation_in_flight(self):
        scanner = FakeScanner(delay=0.01)
        executor, _, _, _ = build_executor(scanner)
        queue = ScanUnitQueue()
        queue.extend([FileScan(path=f"/ws/{i}.py") for i in range(5)])

        await executor.run(queue, lambda: FAKE_RG)

        assert len(scanner.calls) == 5
        assert scanner.max_in_flight == 1

    @pytest.mark.asyncio
    async def test_units_pushed_during_drain_are_processed(self):
        scanner = FakeScanner({"/ws/late.py": [make_match("/ws/late.py", 4)]})
        scanner.gates["/ws"] = asyncio.Event()
        executor, aggregate, projection, _ = build_executor(scanner)
        queue = ScanUnitQueue()
        queue.push(FolderScan(path="/ws"))

        drain = asyncio.create_task(executor.run(queue, lambda: FAKE_RG))
        await asyncio.sleep(0)
        queue.push(FileScan(path="/ws/late.py"))
        scanner.gates["/ws"].set()
        processed = await drain

        assert processed == 2
        assert projection.projection_count == 1
        assert aggregate.files() == ["/ws/late.py"]

    @pytest.mark.asyncio
    async def test_adapter_error_warns_and_continues(self):
        """A failing unit is reported and the rest of the queue still runs."""
        scanner = FakeScanner({"/ws/ok.py": [make_match("/ws/ok.py", 1)]})
        scanner.errors["/ws/bad.py"] = AdapterError(
            "ripgrep exited with code 2", diagnostic_output="regex parse error\n"
        )
        executor, aggregate, projection, reporter = build_executor(scanner)
        queue = ScanUnitQueue()
        queue.extend([FileScan(path="/ws/ok.py"), FileScan(path="/ws/bad.py")])

        processed = await executor.run(queue, lambda: FAKE_RG)

        assert processed == 2
        assert reporter.warnings == ["todo-tree: ripgrep exited with code 2 (regex parse error)"]
        assert aggregate.files() == ["/ws/ok.py"]
        assert projection.projection_count == 1
        assert executor.get_metrics()["units_failed"] == 1

    @pytest.mark.asyncio
    async def test_file_with_no_matches_is_removed(self):
        """Rescanning a file whose markers are gone leaves it absent."""
        scanner = FakeScanner()
        executor, aggregate, _, _ = build_executor(scanner)
        aggregate.merge([make_match("/ws/a.py", 1), make_match("/ws/b.py", 3)])
        queue = ScanUnitQueue()
        queue.push(FileScan(path="/ws/a.py"))

        await executor.run(queue, lambda: FAKE_RG)

        assert aggregate.files() == ["/ws/b.py"]

    @pytest.mark.asyncio
    async def test_rescanning_same_file_is_idempotent(self):
        scanner = FakeScanner({"/ws/a.py": [make_match("/ws/a.py", 1), make_match("/ws/a.py", 7)]})
        executor, aggregate, _, _ = build_executor(scanner)
        queue = ScanUnitQueue()
        queue.extend([FileScan(path="/ws/a.py"), FileScan(path="/ws/a.py")])

        await executor.run(queue, lambda: FAKE_RG)

        assert len(aggregate) == 2

    @pytest.mark.asyncio
    async def test_folder_result_replaces_earlier_file_result(self):
        """A folder scan that runs after a file scan replaces that file's entries."""
        scanner = FakeScanner({
            "/ws": [make_match("/ws/a.py", 1), make_match("/ws/b.py", 2)],
            "/ws/a.py": [make_match("/ws/a.py", 1)],
        })
        executor, aggregate, _, _ = build_executor(scanner)
        aggregate.merge([make_match("/ws/c.py", 5)])
        queue = ScanUnitQueue()
        queue.extend([FolderScan(path="/ws"), FileScan(path="/ws/a.py")])

        await executor.run(queue, lambda: FAKE_RG)

        assert scanner.targets == ["/ws/a.py", "/ws"]
        assert [(m.file, m.line) for m in aggregate.sorted_view()] == [
            ("/ws/a.py", 1), ("/ws/b.py", 2), ("/ws/c.py", 5)
        ]

    @pytest.mark.asyncio
    async def test_results_from_before_clear_are_dropped(self):
        scanner = FakeScanner({"/ws": [make_match("/ws/old.py", 1)]})
        scanner.gates["/ws"] = asyncio.Event()
        executor, aggregate, _, _ = build_executor(scanner)
        queue = ScanUnitQueue()
        queue.push(FolderScan(path="/ws"))

        drain = asyncio.create_task(executor.run(queue, lambda: FAKE_RG))
        await asyncio.sleep(0)
        aggregate.clear()
        scanner.gates["/ws"].set()
        await drain

        assert len(aggregate) == 0
        assert executor.get_metrics()["stale_results_dropped"] == 1

    @pytest.mark.asyncio
    async def test_empty_queue_still_projects(self):
        executor, _, projection, _ = build_executor(FakeScanner())

        processed = await executor.run(ScanUnitQueue(), lambda: FAKE_RG)

        assert processed == 0
        assert projection.projection_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_run_is_rejected(self):
        scanner = FakeScanner()
        scanner.gates["/ws"] = asyncio.Event()
        executor, _, _, _ = build_executor(scanner)
        queue = ScanUnitQueue()
        queue.push(FolderScan(path="/ws"))

        drain = asyncio.create_task(executor.run(queue, lambda: FAKE_RG))
        await asyncio.sleep(0)
        assert executor.is_running

        with pytest.raises(RuntimeError):
            await executor.run(ScanUnitQueue(), lambda: FAKE_RG)

        scanner.gates["/ws"].set()
        await drain
        assert not executor.is_running
