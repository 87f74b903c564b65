from .sql_mail_store import SqlMailStore

__all__ = ["SqlMailStore"]
