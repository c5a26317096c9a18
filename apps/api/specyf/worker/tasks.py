from celery.utils.log import get_task_logger
from sqlalchemy.orm import Session

from specyf.db import SessionLocal
from specyf.models.email_log import EmailKind
from specyf.services import communications_service
from specyf.worker.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="send_event_emails")
def send_event_emails(
    event_id: str,
    kind: str,
    guest_ids: list[str],
    announcement_id: str | None = None,
) -> dict:
    db: Session = SessionLocal()
    try:
        logger.info("send_event_emails started event_id=%s kind=%s recipients=%s", event_id, kind, len(guest_ids))
        batch = communications_service.deliver_by_ids(
            db, event_id, EmailKind(kind), guest_ids, announcement_id
        )
        logger.info(
            "send_event_emails completed event_id=%s succeeded=%s/%s",
            event_id,
            batch["success_count"],
            batch["total_count"],
        )
        return {"success_count": batch["success_count"], "total_count": batch["total_count"]}
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@celery_app.task(name="send_due_reminders")
def send_due_reminders() -> dict:
    db: Session = SessionLocal()
    try:
        attempted = communications_service.send_due_reminders(db)
        logger.info("send_due_reminders completed attempted=%s", attempted)
        return {"attempted": attempted}
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
