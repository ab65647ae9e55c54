# Each sync worker is its own process with its own contact abuse tracker,
# so rate limits and blocks apply per worker.
bind = "unix:/var/www/website/contact-backend/gunicorn.sock"
workers = 2
worker_class = "sync"
worker_tmp_dir = "/dev/shm"
max_requests = 1000
max_requests_jitter = 100
timeout = 60
keepalive = 5

# Logging
accesslog = "/var/log/contact-backend/access.log"
errorlog = "/var/log/contact-backend/error.log"
loglevel = "info"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = "contact-backend"

# Server mechanics
daemon = False
pidfile = "/var/run/contact-backend/gunicorn.pid"
user = "deploy"
group = "deploy"
umask = 0o007

# Server hooks
def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("Starting contact backend")

def when_ready(server):
    """Called just after the server is started."""
    server.log.info("Contact backend is ready. Spawning workers")

def post_fork(server, worker):
    """Called just after a worker has been forked."""
    worker.log.info(f"Worker {worker.pid} started with a fresh abuse tracker")

def worker_abort(worker):
    """Called when a worker receives the SIGABRT signal."""
    worker.log.info("Worker received SIGABRT signal")
