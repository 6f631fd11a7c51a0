"""
Tutorials API: Application Package
==================================

What: REST API exposing CRUD operations over tutorial records stored in MongoDB.
How:  FastAPI application assembled by `tutorials_api.main.create_app` and run
      by the lifecycle controller in `tutorials_api.server`.

Layering:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │      Services (Persistence logic)   │  ← validation, store error mapping
    ├─────────────────────────────────────┤
    │      Models & Schemas (Data)        │  ← document layout + Pydantic
    ├─────────────────────────────────────┤
    │     Database connector (Motor)      │  ← pool + cached connection state
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
