"""
Catalog Service - job posting import and storage.
"""

from .importer import CatalogImporter
from .store import JobCatalog, load_jobs_file

__all__ = ["CatalogImporter", "JobCatalog", "load_jobs_file"]
