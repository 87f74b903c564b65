"""Inbox module: HTTP retrieval and clearing of captured messages."""
