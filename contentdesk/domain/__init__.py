"""
Domain layer - the rich content document tree and selections over it.

Pure values only: no I/O, no configuration.
"""
