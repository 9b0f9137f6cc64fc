# Middleware package init
"""
NoteShelf Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request, plus the access
       control dependencies used by route signatures.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip/CORS] → Route

    1. Rate Limit rejects abusive clients before any other work.
    2. Request ID sets the correlation id every later log line carries.
    3. Logging records method, path, status and duration on the way out.

Access control (auth.py) is not middleware: it runs as FastAPI
dependencies so each route declares none / optional / required.
"""
