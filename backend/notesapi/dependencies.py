"""
Notes API - FastAPI Dependencies
=================================

What:  Hands the process-wide NoteStore to route handlers.
How:   The app factory (or lifespan) puts the store on `app.state.store`;
       handlers declare `store: NoteStore = Depends(get_store)`.
       Tests swap the store by passing their own to create_app().
"""

from fastapi import Request

from notesapi.services.note_store import NoteStore


def get_store(request: Request) -> NoteStore:
    """Return the store created at startup for this application."""
    return request.app.state.store
