"""
CSS processing for the hardcoded class fixer: preprocessing and rule rewriting.
"""

from addon_porter.core.css.fixer import ClassFixer, group_markers
from addon_porter.core.css.preprocess import StylesheetPreprocessor, substitute_variables

__all__ = ["ClassFixer", "StylesheetPreprocessor", "group_markers", "substitute_variables"]
