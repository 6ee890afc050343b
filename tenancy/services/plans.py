"""
Plan Catalog

Super-admin CRUD over plans, plus get_plan(), the plan-lookup used by
license generation and claim.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from tenancy.core.exceptions import NotFoundError, ValidationError
from tenancy.models.plan import Plan
from tenancy.services import audit

UPDATABLE_FIELDS = ("name", "description", "max_members", "max_admins", "feature_flags")


def get_plan(db: Session, plan_id: Optional[str]) -> Optional[Plan]:
    if not plan_id:
        return None
    return db.query(Plan).filter(Plan.id == plan_id).first()


def create_plan(
    db: Session,
    actor_user_id: str,
    name: str,
    max_members: int,
    max_admins: int,
    description: str = "",
    feature_flags: Optional[Dict[str, Any]] = None,
) -> Plan:
    plan = Plan(
        name=name,
        description=description or "",
        max_members=max_members,
        max_admins=max_admins,
        feature_flags=feature_flags or {},
    )
    db.add(plan)
    db.commit()

    audit.record(db, "PLAN_CREATE", actor_user_id=actor_user_id,
                 metadata={"plan_id": plan.id, "name": plan.name})
    return plan


def list_plans(db: Session) -> List[Plan]:
    return db.query(Plan).order_by(Plan.created_at.desc()).all()


def update_plan(db: Session, actor_user_id: str, plan_id: str, changes: Dict[str, Any]) -> Plan:
    """
    Partial update. Existing licenses keep their snapshot.
    """
    changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
    if not changes:
        raise ValidationError("At least one field is required")

    plan = get_plan(db, plan_id)
    if not plan:
        raise NotFoundError("Plan not found")

    for field_name, value in changes.items():
        setattr(plan, field_name, value)
    db.commit()

    audit.record(db, "PLAN_UPDATE", actor_user_id=actor_user_id, metadata={"plan_id": plan.id})
    return plan


def delete_plan(db: Session, actor_user_id: str, plan_id: str) -> None:
    plan = get_plan(db, plan_id)
    if not plan:
        raise NotFoundError("Plan not found")

    db.delete(plan)
    db.commit()

    audit.record(db, "PLAN_DELETE", actor_user_id=actor_user_id, metadata={"plan_id": plan_id})
