"""
Transaction exporters: CSV, JSON, and Markdown renderings of one transaction list.
"""

from near_ledger.export.exporters import (
    EXPORT_FORMATS,
    export_csv,
    export_json,
    export_markdown,
    render,
    resolve_format,
    write_export,
)

__all__ = [
    "EXPORT_FORMATS",
    "export_csv",
    "export_json",
    "export_markdown",
    "render",
    "resolve_format",
    "write_export",
]
