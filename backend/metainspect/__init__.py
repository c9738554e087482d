"""
metainspect: progressive technical metadata inspection for arbitrary files.

Baseline filesystem attributes are produced first, then format-specific
enrichment (media, image, document, library asset) is merged into the same
report. The workflow is governed by an explicit state machine and can be
cancelled at any point.
"""

__version__ = "0.1.0"
