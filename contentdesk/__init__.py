"""
contentdesk - rich content documents for the content editor.

Stores post bodies as HTML, edits them as a structured document tree.
"""

__version__ = "0.1.0"
