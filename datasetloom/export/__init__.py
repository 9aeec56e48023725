"""
Training-dataset export for DatasetLoom.
"""

from .archive import ArchiveBuilder, remove_export_file
from .dataset_export import (
    DatasetExporter,
    ExportResult,
    build_export_filename,
    build_manifest,
)
from .formatter import DEFAULT_ROLE_MAPPING, RoleMapping, format_message

__all__ = [
    "ArchiveBuilder",
    "DEFAULT_ROLE_MAPPING",
    "DatasetExporter",
    "ExportResult",
    "RoleMapping",
    "build_export_filename",
    "build_manifest",
    "format_message",
    "remove_export_file",
]
