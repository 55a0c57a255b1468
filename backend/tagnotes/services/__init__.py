# Services package init
"""
TagNotes Backend: Services Layer

Service Inventory:
    - StorageService: async data access; owns the engine / connection pool
    - NotesService:   validation, tag normalization, NotFound translation

Both are constructed once per process (application lifespan or the run-once
schema script) and passed by reference; there are no module-level instances.
"""
