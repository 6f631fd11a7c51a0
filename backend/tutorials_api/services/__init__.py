"""
Tutorials API: Services Layer
=============================

What:  Persistence logic sitting between routes (HTTP) and the database connector.
How:   A service wraps one collection, validates identifiers and converts
       driver failures into application exceptions. Routes receive a service
       through FastAPI's dependency injection.

Service Inventory:
    - TutorialService: CRUD over the `tutorials` collection
"""
