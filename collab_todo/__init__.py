"""Collaborative todo lists: sharing, presence and realtime sync over a pluggable backend."""

__version__ = "0.1.0"
