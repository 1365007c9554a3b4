"""
App shell - entry points around the components (CLI).
"""
