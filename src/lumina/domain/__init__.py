"""Domain layer — command types, the Command model, and enrichment.

This layer depends only on stdlib and pydantic.
It must never import from bridge, host, palette, commands, or config.
"""
