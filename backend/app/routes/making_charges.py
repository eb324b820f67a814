from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import require_admin
from app.models.user import User
from app.services import making_charges as service

router = APIRouter()


class MakingChargeCreate(BaseModel):
    category: Optional[str] = None
    purity: Optional[str] = None
    making_charge_pct: float = Field(ge=0, allow_inf_nan=False)
    wastage_pct: float = Field(0, ge=0, allow_inf_nan=False)


class MakingChargeUpdate(BaseModel):
    category: Optional[str] = None
    purity: Optional[str] = None
    making_charge_pct: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    wastage_pct: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    is_active: Optional[bool] = None

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError('At least one field must be provided')
        return self


class MakingChargeResponse(BaseModel):
    id: int
    category: Optional[str]
    purity: Optional[str]
    making_charge_pct: float
    wastage_pct: float
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ResolvedCharges(BaseModel):
    making_charge_pct: float
    wastage_pct: float
    rule_id: Optional[int]


@router.get("", response_model=List[MakingChargeResponse])
def list_making_charges(
    category: Optional[str] = Query(None),
    purity: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
):
    return service.list_configs(db, category=category, purity=purity, include_inactive=include_inactive)


@router.get("/resolve", response_model=ResolvedCharges)
def resolve_making_charges(
    category: Optional[str] = Query(None),
    purity: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Charges the calculator would use for this category / purity"""
    return service.resolve_charges(db, category, purity)


@router.post("", response_model=MakingChargeResponse, status_code=201)
def create_making_charge(
    data: MakingChargeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return service.create_config(
        db,
        making_charge_pct=data.making_charge_pct,
        wastage_pct=data.wastage_pct,
        category=data.category,
        purity=data.purity,
    )


@router.put("/{config_id}", response_model=MakingChargeResponse)
def update_making_charge(
    config_id: int,
    data: MakingChargeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return service.update_config(db, config_id, **data.model_dump(exclude_unset=True))


@router.delete("/{config_id}")
def delete_making_charge(
    config_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Soft delete: the rule stays in the table as inactive"""
    service.deactivate_config(db, config_id)
    return {"message": "Making charges configuration deleted"}
