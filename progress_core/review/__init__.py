"""
Review Module.

The error notebook: missed questions kept for later review.
"""

from progress_core.review.error_notebook import ErrorNotebook, NotebookFilter, NotebookSummary

__all__ = ["ErrorNotebook", "NotebookFilter", "NotebookSummary"]
