"""
Catalog ETL: batch import of supplier catalogs into the product store
"""

__version__ = "0.3.0"
