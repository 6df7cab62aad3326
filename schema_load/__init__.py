"""Schema Load - Generates Java POJOs from relational database metadata."""

__version__ = "0.1.0"
