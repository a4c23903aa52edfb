"""
Notes API - Routes Package
===========================

Route Inventory:
    - notes.py:   /api/v1/notes...   (CRUD and search)
    - health.py:  GET /health         (service health check)

Routes are thin: decode the request, call NoteStore once, encode the result.
"""
