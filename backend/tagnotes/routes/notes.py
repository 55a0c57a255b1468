"""
TagNotes Backend: Notes Route Handlers
======================================

What:  CRUD endpoints for notes plus the distinct-tag listing.
How:   Extracts path/query/body data, delegates to NotesService, returns JSON.
       Error kinds are turned into status codes by the global exception
       handlers in main.py, never here.

Endpoints:
    GET    /api/notes[?tag=]     list notes (optionally by tag)  → 200
    GET    /api/notes/tags       distinct tags                   → 200
    GET    /api/notes/{id}       one note                        → 200 | 404
    POST   /api/notes            create                          → 201 | 400
    PUT    /api/notes/{id}       full replacement update         → 200 | 400 | 404
    DELETE /api/notes/{id}       delete                          → 204 | 404
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status

from tagnotes.schemas.note import ErrorResponse, NoteResponse
from tagnotes.services.notes_service import NotesService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])


def get_notes_service(request: Request) -> NotesService:
    """Dependency returning the NotesService built in the application lifespan."""
    return request.app.state.notes_service


@router.get(
    "/notes",
    response_model=List[NoteResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List notes, optionally filtered by tag",
)
async def list_notes(
    tag: Optional[str] = Query(
        default=None,
        description="Only return notes carrying this exact (lowercase) tag",
    ),
    service: NotesService = Depends(get_notes_service),
) -> List[NoteResponse]:
    """Most recently updated notes first."""
    if tag:
        return await service.list_by_tag(tag)
    return await service.list_all()


# Declared before /notes/{note_id} so "tags" is not parsed as an id
@router.get(
    "/notes/tags",
    response_model=List[str],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all distinct tags",
)
async def list_tags(service: NotesService = Depends(get_notes_service)) -> List[str]:
    return await service.list_tags()


@router.get(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single note by ID",
)
async def get_note(
    note_id: int,
    service: NotesService = Depends(get_notes_service),
) -> NoteResponse:
    return await service.get_by_id(note_id)


@router.post(
    "/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid note data", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a note",
)
async def create_note(
    payload: Any = Body(
        ...,
        examples=[{"title": "Shopping", "content": "Milk, eggs", "tags": "food, urgent"}],
    ),
    service: NotesService = Depends(get_notes_service),
) -> NoteResponse:
    """
    Body: `{"title": str, "content": str, "tags": [str] | "a, b"}`.

    The body is passed to NotesService as-is; validation errors come back as
    400 with the offending field in `details.field`.
    """
    return await service.create(payload)


@router.put(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={
        400: {"description": "Invalid note data", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Replace a note's title, content and tags",
)
async def update_note(
    note_id: int,
    payload: Any = Body(...),
    service: NotesService = Depends(get_notes_service),
) -> NoteResponse:
    return await service.update(note_id, payload)


@router.delete(
    "/notes/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a note",
)
async def delete_note(
    note_id: int,
    service: NotesService = Depends(get_notes_service),
) -> Response:
    await service.delete(note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
