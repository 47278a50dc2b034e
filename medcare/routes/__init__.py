"""
MedCare Backend: API Routes Package
=====================================

Route Inventory:
    - auth.py:           POST /auth/jwt, POST /auth/logout
    - users.py:          /users (profile upsert, roles)
    - camps.py:          /camps (CRUD, listing, search, reconciliation)
    - registrations.py:  /registrations (join, rate, cancel, status, lists)
    - payments.py:       /payments (intent, records)
    - health.py:         GET /health

Routes are thin: they resolve the gates and the session through Depends,
call one service method, and return its result.
"""
