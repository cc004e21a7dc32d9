"""
Export layer: serializer registry and the per-table exporter.
"""

from .serializers import SERIALIZERS, Serializer
from .service import ExportFile, TableExporter, export_rows

__all__ = ["SERIALIZERS", "Serializer", "ExportFile", "TableExporter", "export_rows"]
