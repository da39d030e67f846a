"""Gunicorn config for container deployment."""
import os

wsgi_app = "churn_analytics.main:app"

# Bind to the platform's PORT or default 8000
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Uvicorn async workers. Each worker holds its own DataStore, so an upload
# only reaches the worker that served it; keep a single worker unless
# CHURN_ANALYTICS_CSV preloads the same file everywhere.
worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))

timeout = 60
graceful_timeout = 30

# Keep-alive must exceed the proxy keep-alive (commonly 60s)
keepalive = 65

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"
