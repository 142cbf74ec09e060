"""Triage Engine: local IT-support triage, knowledge retrieval and inventory linking."""

__version__ = "0.1.0"
