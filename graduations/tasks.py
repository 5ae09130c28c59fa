"""
Celery tasks for the graduations app.
"""
import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def reconcile_graduations():
    """
    Finish belt changes that never reached the student record.

    Registered in CELERY_BEAT_SCHEDULE; safe to run at any interval since
    approval only applies a belt change once.

    Returns:
        dict with checked, repaired and failed counts
    """
    from .services import reconcile_pending_graduations

    summary = reconcile_pending_graduations()
    if summary['failed']:
        logger.warning(f"Graduation reconciliation left {summary['failed']} graduation(s) unresolved")
    return summary
