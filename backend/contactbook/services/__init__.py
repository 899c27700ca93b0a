"""
ContactBook Backend - Services Layer
=====================================

What:  Business logic between routes (HTTP) and the database.
How:   Stateless classes with a module-level singleton each; every method
       takes the request's AsyncSession as its first argument.

Service Inventory:
    - AuthService:     registration, user lookups, password verification
    - ContactService:  per-user contact CRUD, search and pagination
"""
