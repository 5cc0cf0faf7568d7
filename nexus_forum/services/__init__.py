# Services package init
"""
Nexus Forum Backend — Services Layer
=====================================

What:  Business logic and persistence contract between routes (HTTP) and the
       database.
How:   Routes receive a ForumStore through FastAPI's dependency injection and
       call AuthService for anything touching passwords or tokens.

Service Inventory:
    - ForumStore (abstract): data/access contract of the forum
    - SQLForumStore: async SQLAlchemy implementation, one session per request
    - MemoryForumStore: in-process implementation for demos and tests
    - AuthService: password hashing, login, JWT issue/verify
"""
