"""
Top-level package for the dynamic table engine.

Most code should import from submodules such as:
    dyntable.core      (config schema, view pipeline, selection)
    dyntable.services  (table controller, action dispatcher, audit)
    dyntable.export
    dyntable.ui        (Dash host)
"""

__all__: list[str] = []
