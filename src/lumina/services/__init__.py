"""Service layer — operations returning ServiceResult.

Services may import from domain, bridge and palette.
They must never import from commands or output.
"""
