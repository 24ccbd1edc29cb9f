# app/api/comments/__init__.py
