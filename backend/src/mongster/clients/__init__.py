from .dashboard_poller import DashboardPoller, PollResult, diff_new_messages
from .http_client import create_sync_client

__all__ = ["DashboardPoller", "PollResult", "diff_new_messages", "create_sync_client"]
