# app/api/reconcile/__init__.py
