"""
Notes API - Notes Route Handlers
=================================

What:  CRUD and search endpoints for notes under /api/v1.
How:   Each handler validates the path/body, makes exactly one NoteStore
       call and encodes the result. Errors are raised, never returned;
       the global handlers in main.py map them to status codes.

Route Inventory:
    GET     /api/v1/notes/search?q=   search title/content       → 200
    GET     /api/v1/notes/{id}        fetch one note             → 200
    POST    /api/v1/notes             create                     → 201
    PUT     /api/v1/notes/{id}        replace title and content  → 200, empty body
    DELETE  /api/v1/notes/{id}        delete                     → 200, empty body

The search route is declared first so "search" is never taken for an id.
"""

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import ValidationError as SchemaValidationError

from notesapi.dependencies import get_store
from notesapi.exceptions import ValidationError
from notesapi.schemas.note import (
    ErrorResponse,
    NoteIn,
    NoteResponse,
    SearchResponse,
)
from notesapi.services.note_store import NoteStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Notes"])

# At most 19 digits: anything longer cannot fit a signed 64-bit integer
_NOTE_ID_PATTERN = re.compile(r"[+-]?[0-9]{1,19}")

MAX_ID_VALUE = 2**63 - 1

# Body schema for OpenAPI; the body itself is decoded by read_note_body()
_NOTE_BODY_DOC = {
    "requestBody": {
        "required": True,
        "content": {
            "application/json": {"schema": NoteIn.model_json_schema()},
        },
    },
}


# ══════════════════════════════════════════════════════════════════════════
# Input Decoding
# ══════════════════════════════════════════════════════════════════════════

def parse_note_id(raw: str) -> int:
    """
    Parse a path id into a positive integer.

    Accepts an optional sign followed by ASCII digits; the value must be
    greater than zero and fit a signed 64-bit integer.

    Raises:
        ValidationError: "abc", "1.5", "0", "-3", "9223372036854775808", ...
    """
    if not _NOTE_ID_PATTERN.fullmatch(raw):
        raise ValidationError(message="Invalid ID", field="id")
    note_id = int(raw)
    if not 0 < note_id <= MAX_ID_VALUE:
        raise ValidationError(message="Invalid ID", field="id")
    return note_id


async def read_note_body(request: Request) -> NoteIn:
    """
    Decode and validate a note request body.

    Raises:
        ValidationError: body is not JSON, not a JSON object, or lacks a
            non-empty string title/content.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError(message="Invalid request", field="body")

    if not isinstance(payload, dict):
        raise ValidationError(message="Invalid request", field="body")

    try:
        return NoteIn.model_validate(payload)
    except SchemaValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise ValidationError(
            message="Title and content required",
            context={"fields": fields},
        )


# ══════════════════════════════════════════════════════════════════════════
# Handlers
# ══════════════════════════════════════════════════════════════════════════

@router.get(
    "/notes/search",
    response_model=SearchResponse,
    responses={
        400: {"description": "Missing query", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Search notes by title or content",
)
async def search_notes(
    q: Optional[str] = Query(
        default=None,
        description="Substring to look for in title or content (case-insensitive)",
    ),
    store: NoteStore = Depends(get_store),
) -> SearchResponse:
    if not q:
        raise ValidationError(message="Missing query parameter 'q'", field="q")

    notes = await store.search(q)
    return SearchResponse(
        search_result=[NoteResponse.model_validate(note) for note in notes],
    )


@router.get(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={
        400: {"description": "Invalid ID", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single note by ID",
)
async def get_note(
    note_id: str,
    store: NoteStore = Depends(get_store),
) -> NoteResponse:
    note = await store.get(parse_note_id(note_id))
    return NoteResponse.model_validate(note)


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteResponse,
    responses={
        400: {"description": "Invalid body", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a note",
    openapi_extra=_NOTE_BODY_DOC,
)
async def create_note(
    request: Request,
    store: NoteStore = Depends(get_store),
) -> NoteResponse:
    """
    Create a note and return it with its assigned id.

    Example:
        POST /api/v1/notes  {"title": "A", "content": "B"}
        → 201 {"id": 1, "title": "A", "content": "B"}
    """
    body = await read_note_body(request)
    note_id = await store.create(body.title, body.content)
    return NoteResponse(id=note_id, title=body.title, content=body.content)


@router.put(
    "/notes/{note_id}",
    response_class=Response,
    responses={
        200: {"description": "Note updated (empty body)"},
        400: {"description": "Invalid ID or body", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Replace a note's title and content",
    openapi_extra=_NOTE_BODY_DOC,
)
async def update_note(
    note_id: str,
    request: Request,
    store: NoteStore = Depends(get_store),
) -> Response:
    # id is checked before the body, so a bad id wins over a bad body
    parsed_id = parse_note_id(note_id)
    body = await read_note_body(request)
    await store.update(parsed_id, body.title, body.content)
    return Response(status_code=200)


@router.delete(
    "/notes/{note_id}",
    response_class=Response,
    responses={
        200: {"description": "Note deleted (empty body)"},
        400: {"description": "Invalid ID", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    store: NoteStore = Depends(get_store),
) -> Response:
    await store.delete(parse_note_id(note_id))
    return Response(status_code=200)
