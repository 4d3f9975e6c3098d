"""Folio - portfolio site backend with a tool-calling chat assistant."""

__version__ = "0.1.0"
