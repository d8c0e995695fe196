"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus)
- task_store.py: SQLite-backed storage + status updates with comment log
- reminder_scheduler.py: background sweep that emails due-soon reminders
- task_api.py: status-update path (persist, then notify)
"""
