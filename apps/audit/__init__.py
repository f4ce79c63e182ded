"""
Audit app for Newsdesk.

Append-only activity log of every workflow attempt and draft change.
"""
