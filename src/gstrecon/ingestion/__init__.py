"""
Ingestion package: read CSV and XLSX files into datasets.
"""
from .loaders import IngestionError, load_csv, load_dataset, load_xlsx

__all__ = ["IngestionError", "load_csv", "load_dataset", "load_xlsx"]
