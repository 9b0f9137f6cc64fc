# Routes package init
"""
NoteShelf Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:        POST /api/auth/register, POST /api/auth/login, GET /api/auth/me
    - notes.py:       GET/POST /api/notes, GET/PUT/DELETE /api/notes/{id},
                      PATCH /api/notes/{id}/archive
    - categories.py:  GET/POST /api/categories, GET/DELETE /api/categories/{id},
                      GET /api/notes/{id}/categories,
                      POST/DELETE /api/notes/{id}/categories/{categoryId}
    - health.py:      GET /health

Design Principle:
    Routes are THIN — they declare the access policy, extract input, call a
    service, and pick the status code. Business logic belongs in services.
"""
