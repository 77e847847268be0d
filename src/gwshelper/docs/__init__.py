"""
Google Docs helpers.  The functions in ops take a document ID,
GoogleDocument wraps one for a series of edits.
"""
from . import ops
from .document import GoogleDocument
from .resources import Document, OptionalColor, RgbColor
