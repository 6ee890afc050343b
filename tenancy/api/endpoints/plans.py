"""
Plan Endpoints

Super-admin plan catalog.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tenancy.database import get_db
from tenancy.core.permissions import Action, Actor
from tenancy.schemas.plan import PlanCreate, PlanResponse, PlanUpdate
from tenancy.services import plans as plan_service
from tenancy.api.deps import require_platform_action

router = APIRouter(prefix="/plans", tags=["plans"])

require_plan_admin = require_platform_action(Action.MANAGE_PLANS)


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_data: PlanCreate,
    actor: Actor = Depends(require_plan_admin),
    db: Session = Depends(get_db)
):
    return plan_service.create_plan(
        db,
        actor.user_id,
        name=plan_data.name,
        description=plan_data.description,
        max_members=plan_data.max_members,
        max_admins=plan_data.max_admins,
        feature_flags=plan_data.feature_flags,
    )


@router.get("", response_model=list[PlanResponse])
async def list_plans(
    actor: Actor = Depends(require_plan_admin),
    db: Session = Depends(get_db)
):
    return plan_service.list_plans(db)


@router.put("/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: str,
    plan_data: PlanUpdate,
    actor: Actor = Depends(require_plan_admin),
    db: Session = Depends(get_db)
):
    """
    Partial update. Licenses already issued keep their limits snapshot.
    """
    return plan_service.update_plan(db, actor.user_id, plan_id, plan_data.model_dump(exclude_unset=True))


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(
    plan_id: str,
    actor: Actor = Depends(require_plan_admin),
    db: Session = Depends(get_db)
):
    plan_service.delete_plan(db, actor.user_id, plan_id)
