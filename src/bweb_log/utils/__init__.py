"""Shared utilities for bweb-log.

Import directly from submodules:
    from bweb_log.utils.redaction import redact_fields
"""

__all__: list[str] = []  # Direct submodule imports required (see docstring)
