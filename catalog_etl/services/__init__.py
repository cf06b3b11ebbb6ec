"""
Service layer for the catalog import pipeline
"""

from .audience_classifier import AudienceClassifier, GeminiTextGenerator, TextGenerator
from .image_replicator import DeferredUpload, ImageReplicator, image_key
from .persistence_planner import WriteOperation, plan_image_write, plan_product_writes, plan_supplier_write
from .storage import BlobStorage, LocalBlobStorage, SupabaseStorage, create_storage

__all__ = [
    "AudienceClassifier",
    "GeminiTextGenerator",
    "TextGenerator",
    "DeferredUpload",
    "ImageReplicator",
    "image_key",
    "WriteOperation",
    "plan_image_write",
    "plan_product_writes",
    "plan_supplier_write",
    "BlobStorage",
    "LocalBlobStorage",
    "SupabaseStorage",
    "create_storage",
]
