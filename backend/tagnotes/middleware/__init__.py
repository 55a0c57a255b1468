# Middleware package init
"""
TagNotes Backend: Middleware Package

Chain for an incoming request (last added in create_app runs first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

Request ID runs first so the access log line and error bodies can carry it.
"""
