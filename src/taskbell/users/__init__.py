"""User model and SQLite-backed UserStore."""
