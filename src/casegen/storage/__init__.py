"""Read access to upstream generation artifacts."""

from .bundles import BundleStorage

__all__ = ["BundleStorage"]
