"""
Domain Layer

This package contains business logic organized by domain area.
Domain services implement core algorithms and should not handle
external I/O (the HTTP layer lives in handlers/ and main.py).

Domains:
- taxonomy: hierarchy construction from spreadsheets and entity lists
"""
