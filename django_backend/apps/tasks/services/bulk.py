import logging

from apps.common.errors import AppError
from apps.tasks.services.tasks import delete_task, update_task

logger = logging.getLogger(__name__)


def _run_each(ids, operation):
    """
    Apply ``operation`` to each id independently. A failing id does not stop
    the batch; its error is collected instead.
    """
    result = {"successful": 0, "failed": 0, "errors": []}
    for task_id in ids:
        try:
            operation(task_id)
        except AppError as exc:
            result["failed"] += 1
            result["errors"].append({"id": task_id, "code": exc.error_code, "message": exc.message})
        else:
            result["successful"] += 1

    if result["failed"]:
        logger.warning(f"Bulk operation finished with {result['failed']} of {len(ids)} failures")
    return result


def bulk_update_tasks(ids, data, user=None):
    return _run_each(ids, lambda task_id: update_task(task_id, dict(data), user))


def bulk_delete_tasks(ids, user=None):
    return _run_each(ids, lambda task_id: delete_task(task_id, user))
