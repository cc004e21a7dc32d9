"""
Service layer: the table controller and the collaborators it drives
(action dispatcher, audit sinks, data sources).
"""

from .audit import AuditEvent, InMemoryAuditLog, LoggingAuditSink
from .data_source import DataSource, InMemoryDataSource
from .dispatcher import ActionDispatcher, Outcome
from .table_controller import TableController

__all__ = [
    "AuditEvent",
    "InMemoryAuditLog",
    "LoggingAuditSink",
    "DataSource",
    "InMemoryDataSource",
    "ActionDispatcher",
    "Outcome",
    "TableController",
]
