"""
Atomic components.

Each component exposes run_* entry points, frozen input/output models and
Protocol ports for its collaborators.
"""
