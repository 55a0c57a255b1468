"""
TagNotes Backend: Application Package
=====================================

What: Note-taking API (notes with optional tag labels) plus a small browser client.
Who:  Imported by uvicorn (`tagnotes.main:app`), the run-once schema script, and pytest.

Architecture Note:
    The backend is split into layers, each only talking to the one below it:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP verbs, status codes
    ├─────────────────────────────────────┤
    │      NotesService (Business Logic)  │  ← validation, tag normalization
    ├─────────────────────────────────────┤
    │     StorageService (Persistence)    │  ← the only place that issues SQL
    ├─────────────────────────────────────┤
    │   Models / Database (SQLAlchemy)    │  ← ORM mapping, engine, pool
    └─────────────────────────────────────┘

    The storage and service objects are built once in the application lifespan
    and handed to the routes through FastAPI dependencies.
"""

__version__ = "1.0.0"
