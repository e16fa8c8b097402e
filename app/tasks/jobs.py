from app.core.config import settings
from app.core.errors import TransportError, EmailRateLimitedError
from app.tasks.celery_app import celery
from app.tasks import worker_jobs


@celery.task(name="app.tasks.jobs.send_email", bind=True, max_retries=settings.EMAIL_SEND_MAX_RETRIES)
def send_email(self, **payload):
    try:
        return worker_jobs.deliver_email(payload)
    except (TransportError, EmailRateLimitedError) as exc:
        countdown = settings.EMAIL_RETRY_BASE_SECONDS * (2 ** self.request.retries)
        raise self.retry(exc=exc, countdown=countdown)
