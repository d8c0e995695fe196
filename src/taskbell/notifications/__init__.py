"""
Notification subsystem.

Components:
- notifier.py: StateChangeNotifier (persist + email + live push on status change)
- messages.py: reminder / status-change message builders
- delivery.py: best-effort delivery attempts and their outcomes
- mailer.py: SMTP and offline mail channels
- registry.py: thread-safe user -> live session map
- notification_store.py: SQLite-backed persisted notifications
"""
