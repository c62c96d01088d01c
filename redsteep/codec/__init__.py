"""
Redsteep Token Codec
=====================

Compact, printable tokens for embedding in scannable codes.

Components:
    - token.py: TokenCodec (encode / decode) and default-marker helpers
"""
