"""Export file writers."""

from .writer import ExportWriteError, JsonExporter, RecordWriter, serialize_records

__all__ = ["ExportWriteError", "JsonExporter", "RecordWriter", "serialize_records"]
