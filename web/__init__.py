"""JSON web host for the botracers reconciliation engine."""

__version__ = "0.3.0"
