# Gunicorn Configuration for the postpage Flask app

import multiprocessing
import os

wsgi_app = "postpage:create_app()"

# Server socket
bind = os.getenv("GUNICORN_BIND", "127.0.0.1:8000")

# Worker processes
# Each worker has its own SimpleCache unless CACHE_TYPE names a shared backend
workers = multiprocessing.cpu_count() * 2 + 1
# Threads let background page refreshes run next to request handling
worker_class = "gthread"
threads = 4
worker_connections = 1000

# Worker lifecycle
max_requests = 1000
max_requests_jitter = 100
timeout = 30
keepalive = 2
preload_app = True

# Security
limit_request_line = 4096
limit_request_fields = 100
limit_request_field_size = 8190

# Process management: only drop privileges when running as root
if hasattr(os, "geteuid") and os.geteuid() == 0:
    user = os.getenv("GUNICORN_USER", "postpage")
    group = os.getenv("GUNICORN_GROUP", "postpage")

# Logging
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

worker_tmp_dir = "/dev/shm"
