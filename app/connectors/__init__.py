"""
app/connectors package marker.
"""

from app.connectors.base import BaseConnector, ConnectorFetchResult, ConnectorRequestError
from app.connectors.sheet_connector import SheetConnector

__all__ = [
    "BaseConnector",
    "ConnectorFetchResult",
    "ConnectorRequestError",
    "SheetConnector",
]
