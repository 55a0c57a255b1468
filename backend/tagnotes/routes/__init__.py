# Routes package init
"""
TagNotes Backend: API Routes Package

Route Inventory:
    - notes.py:   /api/notes CRUD and /api/notes/tags
    - health.py:  GET /health

Routes stay thin: read the request, call NotesService, return the result.
Status codes for failures come from the exception handlers in main.py.
"""
