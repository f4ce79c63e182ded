"""
Articles app for Newsdesk.

Article storage, author draft management and the publication status
machine.
"""
