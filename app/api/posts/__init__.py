# app/api/posts/__init__.py
