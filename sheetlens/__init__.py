"""
SheetLens - spreadsheet ingestion, column analysis and chart recommendation service
"""

__version__ = "0.1.0"
