"""
Business rules for tasks, comments, attachments and time logs.

Everything in this package is pure: no database access, no request objects.
Predicates return bool; rules that can fail with a reason return
``apps.common.results.Ok`` / ``Err``.
"""
