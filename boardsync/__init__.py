"""boardsync - kanban reordering and reconciliation engine."""

__version__ = "0.1.0"
