# answerfill/processors/__init__.py
"""
Layout engine and PDF/row-data collaborators for AnswerFill.

Modules that need PyMuPDF, pdfminer or openpyxl are lazy-loaded for faster
startup. Use explicit imports like:
    from answerfill.processors.anchor_locator import AnchorLocator
"""

# Fast imports - pure layout logic
from .anchor_locator import AnchorLocator, BoundedSearch
from .box_bounds import BoxBoundEstimator

# Lazy-loaded classes via __getattr__
_LAZY_IMPORTS = {
    'TextFlowWriter': 'text_flow',
    'wrap_text': 'text_flow',
    'ContinuationPageManager': 'continuation',
    'ImageEmbedder': 'image_embedder',
    'PdfDocument': 'pdf_document',
    'FontMetrics': 'pdf_font_manager',
    'build_page_text_indices': 'pdf_text_index',
    'load_answer_rows': 'answer_loader',
    'extract_label_rows': 'label_extractor',
    'write_label_workbook': 'label_extractor',
}

# Submodules that can be accessed via __getattr__ (for patching support)
_SUBMODULES = {'anchor_locator', 'box_bounds', 'text_flow', 'continuation', 'image_embedder',
               'pdf_document', 'pdf_font_manager', 'pdf_text_index', 'answer_loader',
               'label_extractor'}


def __getattr__(name: str):
    """Lazy-load heavy modules on first access."""
    import importlib
    # Support accessing submodules directly (for unittest.mock.patch)
    if name in _SUBMODULES:
        return importlib.import_module(f'.{name}', __package__)
    if name in _LAZY_IMPORTS:
        module_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(f'.{module_name}', __package__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'AnchorLocator',
    'BoundedSearch',
    'BoxBoundEstimator',
    'TextFlowWriter',
    'wrap_text',
    'ContinuationPageManager',
    'ImageEmbedder',
    'PdfDocument',
    'FontMetrics',
    'build_page_text_indices',
    'load_answer_rows',
    'extract_label_rows',
    'write_label_workbook',
]
