"""Timeline Builder: ordered, role-filtered campaign timelines."""

__version__ = "0.1.0"
