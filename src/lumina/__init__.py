"""lumina — command palette dispatch and host bridge."""

__version__ = "0.1.0"
