# backend-services/shared/__init__.py
