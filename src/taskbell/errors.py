# src/taskbell/errors.py

"""
Error taxonomy shared by stores and delivery channels.

- StorageError: a repository could not read or write (SQLite failure, etc.)
- DeliveryError: the mail transport rejected or failed to send a message
- LiveSessionError: a live session could not accept a push (broken connection)

A missing user/task is not an error: lookups return None.
"""

from __future__ import annotations


class TaskbellError(Exception):
    """Base class for all taskbell errors."""


class StorageError(TaskbellError):
    pass


class DeliveryError(TaskbellError):
    pass


class LiveSessionError(TaskbellError, ConnectionError):
    pass
