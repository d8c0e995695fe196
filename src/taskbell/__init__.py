"""
taskbell: task reminder scheduling and status-change notifications.

Subpackages:
- tasks: Task model, SQLite TaskStore, ReminderScheduler, status-update API
- users: User model and SQLite UserStore
- notifications: notifier, message builders, delivery outcomes, mail channels, live-session registry
- connectors: Matrix live-session transport
- cli: composition root and service entrypoint
"""

__version__ = "0.1.0"
