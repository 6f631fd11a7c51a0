"""
Tutorials API: Middleware Package
=================================

What:  Cross-cutting policies applied to every request before route dispatch.

Middleware Chain (request order, outermost first):
    Request → [Security Headers] → [Request ID] → [Logging] → [Rate Limit*]
            → [GZip] → [CORS origin check] → [CORS headers] → [Body size cap]
            → Route Handler

    * only when RATE_LIMIT_ENABLED=true

Security headers, compression, CORS and body parsing keep this relative
order: a rejected Origin never reaches the body reader, and an oversized
body never reaches a handler. Starlette runs middleware in reverse order of
registration, so create_app() adds them innermost first.
"""
