"""Host process side of the bridge.

Stores, OS integration and the assistant gateway live here; the router
binds them to contract channels.
"""
