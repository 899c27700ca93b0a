"""
ContactBook Backend - Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Security Headers] → [CORS] → [Rate Limit]
            → [Logging] → Route Handler

    1. Request ID first: every later stage (including a 429) can use it
    2. Security headers: applied to every response, rejected ones included
    3. CORS: answers preflight requests before they are counted
    4. Rate limit: rejects floods before bodies are read or logged
    5. Logging: sees only admitted requests, with the final status

Starlette executes middleware in REVERSE order of registration; see
create_app() in contactbook.main.
"""
