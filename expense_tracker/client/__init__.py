"""Frontend client: API access and per-session state."""

from expense_tracker.client.data_source import ApiDataSource, ApiError, DataSource
from expense_tracker.client.state import AppState

__all__ = ["ApiDataSource", "ApiError", "AppState", "DataSource"]
