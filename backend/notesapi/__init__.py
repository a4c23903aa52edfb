"""
Notes API - Application Package
================================

What: A small HTTP CRUD service for a single "note" resource.
Who:  Imported by uvicorn (notesapi.main:app), the CLI (notesapi.cli) and pytest.

Layers:

    ┌─────────────────────────────────────┐
    │        Routes (HTTP handlers)       │  ← decode, validate, encode
    ├─────────────────────────────────────┤
    │     NoteStore (storage accessor)    │  ← one SQL statement per call
    ├─────────────────────────────────────┤
    │      Models & Schemas (data)        │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

The store is created once at startup and handed to the app factory; routes
receive it through a FastAPI dependency.
"""

__version__ = "1.0.0"
