# app/api/likes/__init__.py
