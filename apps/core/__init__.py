"""
Core app for Newsdesk.

Provides the shared base model, staff roles, error handling, request
tracing, metrics and health checks.
"""
