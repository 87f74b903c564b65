"""Mongster - disposable mail capture dashboard.

Captures mail sent to an embedded SMTP endpoint, persists each message as a
structured record and serves the captured set to a polling web dashboard.
"""

__version__ = "0.1.0"
