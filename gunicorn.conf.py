"""Gunicorn production configuration for the import service."""
import os

bind = os.environ.get("BIND", "0.0.0.0:8000")
wsgi_app = "resource_hub.main:app"
chdir = "backend"
# Import sessions live in process memory: one worker per container
workers = 1
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
# A large import runs inside one request
timeout = 300
graceful_timeout = 60
keepalive = 5
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info")
