"""
Nexus Forum Backend — Application Package Initializer
======================================================

What: Marks `nexus_forum` as a Python package.
Who:  Imported by uvicorn (nexus_forum.main:app), Alembic, and pytest.

Architecture Note:
    The backend follows the same layered split throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Auth + ForumStore)      │  ← Business rules, persistence contract
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The store layer has two implementations (SQL and in-memory) behind one
    interface; routes receive whichever is configured via Depends(get_store).
"""

__version__ = "1.0.0"
