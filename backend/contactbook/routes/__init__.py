"""
ContactBook Backend - API Routes Package
=========================================

Route Inventory (all but /health mounted under settings.api_prefix):
    - auth.py:      POST /auth/register, POST /auth/login, GET /auth/me
    - contacts.py:  POST/GET /contacts, GET/PUT/DELETE /contacts/{id}
    - health.py:    GET  /health

Routes stay thin: extract validated input, call the service, wrap the
result in its response envelope. Business logic lives in services.
"""
