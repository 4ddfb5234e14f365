"""
Task subsystem.

Components:
- task_models.py: data structures (Task, DueClass) + stored record format
- task_order.py: pure ordering / due-date helpers
- task_store.py: single-writer store over the `tasks` key
- task_api.py: small high-level helpers used by the console
"""
