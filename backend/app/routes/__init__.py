# backend/app/routes/__init__.py
# All application routes are versioned under v1/
