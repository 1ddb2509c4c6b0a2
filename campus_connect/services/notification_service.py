"""
In-app notifications. Rows are written alongside the primary action and
read by the frontend; nothing in the portal core reads them back.
"""

from typing import Optional

from sqlalchemy.orm import Session

from campus_connect.db.models import Notification

APPLICATION_STATUS = "APPLICATION_STATUS"
KYC_STATUS = "KYC_STATUS"


def create_notification(db: Session, user_id: str, title: str, message: str,
                        type: str, data: Optional[dict] = None) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        data=data or {},
    )
    db.add(notification)
    db.flush()
    return notification
