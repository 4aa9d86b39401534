"""Normalization stage: canonical entities, canonical documents and the manifest."""

from casegen.normalization.documents import DocumentNormalizer, extract_entity_references
from casegen.normalization.entities import EntityNormalizer
from casegen.normalization.manifest import ManifestBuilder

__all__ = ["DocumentNormalizer", "EntityNormalizer", "ManifestBuilder", "extract_entity_references"]
