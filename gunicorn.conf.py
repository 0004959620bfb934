"""
Gunicorn configuration for the asset-reports API.
Run with: gunicorn main:app -c gunicorn.conf.py
"""
import os

# Worker configuration
# Cada worker abre su propio pool asyncpg (DB_POOL_MAX_SIZE conexiones como maximo)
workers = int(os.getenv("GUNICORN_WORKERS", "2"))

# Worker class: UvicornWorker para ASGI
worker_class = "uvicorn.workers.UvicornWorker"

# Bind address
port = os.getenv("PORT", "8000")
bind = f"0.0.0.0:{port}"

# Timeouts
# Un reporte pesado bloquea solo su request; el limite duro lo pone gunicorn
timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))
keepalive = 5

# Graceful shutdown
graceful_timeout = 30

# Worker lifecycle
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Preload deshabilitado: el pool asyncpg debe crearse dentro de cada worker
preload_app = False

backlog = 100

worker_tmp_dir = "/tmp"

def on_starting(server):
    """Hook ejecutado al iniciar Gunicorn."""
    import logging
    logger = logging.getLogger("gunicorn.error")
    logger.info(f"[GUNICORN] Iniciando Gunicorn con {workers} workers")

def post_worker_init(worker):
    """Hook ejecutado después de inicializar cada worker."""
    import logging
    logger = logging.getLogger("gunicorn.error")
    logger.info(f"[GUNICORN] Worker {worker.pid} inicializado correctamente")
