"""Validation catalog and validation rule endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formbuilder.core.deps import get_current_admin, get_db
from formbuilder.schemas.forms import (
    ValidationRuleCreate,
    ValidationRuleRead,
    ValidationRuleUpdate,
    ValidationTypeRead,
)
from formbuilder.schemas.submissions import MessageResponse
from formbuilder.services import validation_service

router = APIRouter(prefix="/validations", tags=["validations"])


@router.get("/types", response_model=list[ValidationTypeRead])
def list_types(db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    return validation_service.list_validation_types(db)


@router.post("", response_model=MessageResponse, status_code=201)
def add_rule(
    body: ValidationRuleCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    validation_service.add_validation_rule(
        db,
        owner_id=admin.id,
        validation_type_id=body.validation_type_id,
        column_id=body.column_id,
        form_id=body.form_id,
        is_active=body.is_active,
    )
    return MessageResponse(message="Validation detail added successfully")


@router.get("/forms/{form_id}", response_model=list[ValidationRuleRead])
def list_rules(form_id: int, db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    return [
        validation_service.to_read(rule)
        for rule in validation_service.list_validation_rules(db, admin.id, form_id)
    ]


@router.put("/{rule_id}", response_model=MessageResponse)
def update_rule(
    rule_id: int,
    body: ValidationRuleUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    validation_service.update_validation_rule(
        db, admin.id, rule_id, body.validation_type_id, body.is_active
    )
    return MessageResponse(message="Validation detail updated successfully")


@router.delete("/{rule_id}", response_model=MessageResponse)
def delete_rule(rule_id: int, db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    validation_service.soft_delete_validation_rule(db, admin.id, rule_id)
    return MessageResponse(message="Validation detail soft-deleted successfully")
