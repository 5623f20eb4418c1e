"""taskvault - local persistence layer for a task-management app."""

__version__ = "0.3.0"
