from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from celery import Celery
from app.core.config import settings
from app.core.observability import init_logging
from app.services.email.client import EmailClient


def _redis_url_for_celery(url: str) -> str:
    """Celery requires ssl_cert_reqs for rediss:// (e.g. Upstash TLS)."""
    if not url or not url.strip().lower().startswith("rediss://"):
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    if "ssl_cert_reqs" not in qs:
        qs["ssl_cert_reqs"] = ["CERT_NONE"]
        new_query = urlencode(qs, doseq=True)
        return urlunparse(parsed._replace(query=new_query))
    return url


_redis_url = _redis_url_for_celery(settings.REDIS_URL)

celery = Celery(
    "studio",
    broker=_redis_url,
    backend=_redis_url,
    include=["app.tasks.jobs"],
)

celery.conf.task_always_eager = settings.CELERY_TASK_ALWAYS_EAGER
celery.conf.task_acks_late = True
celery.conf.worker_prefetch_multiplier = 1
celery.conf.result_expires = 7 * 24 * 3600
# Same log format as the API process.
celery.conf.worker_hijack_root_logger = False
init_logging(settings)

# One client per worker process, built at start-up from settings.
email_client = EmailClient.from_settings(settings)
