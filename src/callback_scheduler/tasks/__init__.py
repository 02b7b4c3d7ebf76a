"""
Task subsystem.

Components:
- task_models.py: data structures (Task, DispatchState) + RFC3339/id helpers
- task_store.py: in-memory store keyed by exact target time
- task_scheduler.py: per-task dispatcher (timer, callback, removal)
- task_api.py: validation and registration helpers used by the connectors
"""
