# Services package init
"""
NoteShelf Backend — Services Layer
=====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Separation of concerns — routes handle HTTP, services handle business rules.
How:   Services receive the request's AsyncSession, apply rules, and return ORM
       objects or raise application exceptions.

Service Inventory:
    - NoteService: note CRUD, archive toggle, listings and search
    - CategoryService: category CRUD and note tagging
    - AuthService (noteshelf.security): accounts, passwords and bearer tokens
"""
