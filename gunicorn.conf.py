import multiprocessing
import os

# Server socket settings
bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"
backlog = 2048

# Worker processes
# Synthesis requests spend their time waiting on provider HTTP calls, and the
# provider client is thread-safe, so several threads share each worker.
cpu_count = multiprocessing.cpu_count()
workers = int(os.getenv("GUNICORN_WORKERS", cpu_count * 2))
threads = int(os.getenv("GUNICORN_THREADS", 4))
worker_class = "gthread"
print(f"✅ Polyvox: {workers} gthread workers × {threads} threads")

# Timeouts
# Must stay above the slowest provider call (speech routes cap it at 120s)
timeout = int(os.getenv("GUNICORN_TIMEOUT", 150))
keepalive = 65
graceful_timeout = 30

# Each worker builds its own registry, client and session pools after fork
preload_app = False

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# Process naming
proc_name = "polyvox"

# Worker recycling
max_requests = 10000
max_requests_jitter = 1000


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)


def post_worker_init(worker):
    # Build the provider registry before the first request arrives
    from polyvox.shared.utils.service_loader import get_provider_registry

    registry = get_provider_registry()
    worker.log.info("Worker %s loaded %d TTS providers", worker.pid, len(registry))


def when_ready(server):
    server.log.info("Server is ready. Spawning workers")


def worker_exit(server, worker):
    # Close pooled provider sessions held by this worker
    from polyvox.shared.utils.service_loader import get_provider_client

    if get_provider_client.cache_info().currsize:
        get_provider_client().close()
    server.log.info("Worker exited (pid: %s)", worker.pid)


def worker_int(worker):
    worker.log.info("worker received INT or QUIT signal")


def worker_abort(worker):
    worker.log.info("worker received SIGABRT signal")
