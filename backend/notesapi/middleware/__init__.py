"""
Notes API - Middleware Package
===============================

Middleware Chain:
    Request → [Request ID] → [Access Log] → Route Handler

    Request ID runs first so the access log line and every log entry written
    while handling the request can carry the same correlation id.
"""
