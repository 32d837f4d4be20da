# Middleware package init
"""
Arroyyan Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (execution order):
    Request → [Rate Limit] → [Security Headers] → [Request ID] → [Logging]
            → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: credential-stuffing attempts are rejected before
       any other work (only POST /api/auth/login and /register are counted)
    2. Security Headers: added to every response, including error envelopes
    3. Request ID: sets the correlation id before anything logs
    4. Logging: writes the access line with the id from step 3

    Starlette runs the middleware added LAST first, so create_app() adds
    them in the reverse of this order.
"""
