"""User directory service.

A small HTTP service that registers users under globally unique names and
looks them up by id or name.
"""

__version__ = "1.0.0"
