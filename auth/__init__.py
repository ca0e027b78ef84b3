"""auth/ -- Session and credential management core for Canary.

Layer rule: auth/ imports only stdlib + third-party libraries, plus fastapi in
auth/dependencies.py (it is part of FastAPI's dependency injection system).
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
