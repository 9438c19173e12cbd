"""Palette core — registry loading, visibility, dispatch, and history.

:class:`~lumina.palette.context.PaletteContext` composes the pieces and is
the only owner of palette state.
"""
