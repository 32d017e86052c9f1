"""
Test suite for the scan orchestration layer.

This package contains tests for the incremental scanning components:
- ResultAggregate merging, removal and ordering
- ScanUnitQueue LIFO ordering and replacement
- ScanPlanner trigger handling and executable resolution
- ScanExecutor sequential draining and error reporting
- TodoTreeEngine trigger surface end to end
- WorkspaceWatcher event mapping and debouncing
"""
