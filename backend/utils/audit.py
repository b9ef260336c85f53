from sqlalchemy.orm import Session
from models.log import Log

# Stage an audit entry in the caller's transaction; it commits or rolls back with it
def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", meta=None):
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, meta=meta or {})
    db.add(entry)
    return entry
