"""casegen: normalization, manifesting and verify/repair for generated case dossiers.

This package turns draft suspects, evidence and documents produced by the
upstream generation stages into a canonical, cross-referenced case store,
indexes it with a reference-only manifest, and exposes the cheap verifier and
focused repairer used by the external quality loop.
"""
