# app/api/events/__init__.py
