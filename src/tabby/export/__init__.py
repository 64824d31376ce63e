"""Static export — render and copy every route to the destination."""

from tabby.export.static import ExportedFile, ExportResult, SiteExporter

__all__ = ["ExportResult", "ExportedFile", "SiteExporter"]
