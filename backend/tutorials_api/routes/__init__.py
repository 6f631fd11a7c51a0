"""
Tutorials API: Routes Package
=============================

What:  HTTP route handlers. Each module owns one APIRouter.

Route Inventory:
    - root.py:       GET    /                            (welcome message)
    - health.py:     GET    /health                      (cached DB connection state)
    - tutorials.py:  POST   /api/tutorials               (create)
                     GET    /api/tutorials               (list, optional ?title=)
                     GET    /api/tutorials/published     (list published)
                     GET    /api/tutorials/{id}          (get one)
                     PUT    /api/tutorials/{id}          (partial update)
                     DELETE /api/tutorials/{id}          (delete one)
                     DELETE /api/tutorials               (delete all)

Routes only translate HTTP to service calls; errors are raised as
application exceptions and rendered by the handlers in main.py.
"""
