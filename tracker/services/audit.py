from typing import Optional, Any, Dict
from tracker.models import AuditEvent, Profile


def log_action(*, user: Optional[Profile], action: str, object_type: Optional[str]=None,
               object_id: Optional[int]=None, detail: Optional[Dict[str, Any]]=None) -> AuditEvent:
    return AuditEvent.objects.create(
        user=user if isinstance(user, Profile) and user.pk else None,
        action=action,
        object_type=object_type, object_id=object_id,
        detail=detail or {},
    )
