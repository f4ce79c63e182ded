"""
Editorial app for Newsdesk.

The workflow engine that moves articles from draft to publication, the
review records, feedback threads, category assignments and publishing
rules it works with, and the review desk API.
"""
