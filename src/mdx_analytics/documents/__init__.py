"""Month document encoding and rendering."""
from .codec import encode, encode_header, decode, split_document
from .renderer import render_body

__all__ = ["encode", "encode_header", "decode", "split_document", "render_body"]
