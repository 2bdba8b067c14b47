from datetime import datetime

from sqlalchemy import case, func, literal, or_, update
from sqlalchemy.orm import Session

from . import models


def create_link(db: Session, code: str, target_url: str) -> models.Link:
    link = models.Link(code=code, target_url=target_url, total_clicks=0)
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def get_link(db: Session, code: str) -> models.Link | None:
    return db.query(models.Link).filter_by(code=code).first()


def get_links(db: Session, q: str | None = None) -> list[models.Link]:
    query = db.query(models.Link)
    if q:
        escaped = q.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = query.filter(
            or_(
                func.lower(models.Link.code).like(pattern, escape="\\"),
                func.lower(models.Link.target_url).like(pattern, escape="\\"),
            )
        )
    return query.order_by(models.Link.created_at.desc(), models.Link.id.desc()).all()


def delete_link(db: Session, code: str) -> bool:
    deleted = db.query(models.Link).filter_by(code=code).delete(synchronize_session=False)
    db.commit()
    return deleted > 0


def increment_click(db: Session, code: str, clicked_at: datetime | None = None) -> str | None:
    """Bump the counter and return the target URL in one statement.

    The click time only moves forward: a statement stamped earlier that
    commits after a later one keeps the newer value.
    """
    clicked_at = literal(clicked_at or models.utcnow(), models.Link.last_clicked_at.type)
    statement = (
        update(models.Link)
        .where(models.Link.code == code)
        .values(
            total_clicks=models.Link.total_clicks + 1,
            last_clicked_at=case(
                (models.Link.last_clicked_at > clicked_at, models.Link.last_clicked_at),
                else_=clicked_at,
            ),
        )
        .returning(models.Link.target_url)
        .execution_options(synchronize_session=False)
    )
    target_url = db.execute(statement).scalar_one_or_none()
    db.commit()
    return target_url
