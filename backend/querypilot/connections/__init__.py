"""
Connections Package - Target database engines and schema extraction
"""
from querypilot.connections.connection_manager import (
    connection_manager,
    ConnectionManager,
    build_engine_url
)
from querypilot.connections.schema_extractor import schema_extractor, SchemaExtractor

__all__ = [
    "connection_manager",
    "ConnectionManager",
    "build_engine_url",
    "schema_extractor",
    "SchemaExtractor",
]
