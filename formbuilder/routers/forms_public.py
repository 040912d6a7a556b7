"""Public form endpoints for submitters."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from formbuilder.core.deps import get_db
from formbuilder.core.rate_limit import limiter
from formbuilder.schemas.forms import FormNameRead, FormSchemaRead
from formbuilder.services import form_schema_service, form_service

router = APIRouter(prefix="/forms/public", tags=["forms-public"])


@router.get("/{form_id}/name", response_model=FormNameRead)
@limiter.limit("60/minute")
def get_form_name(request: Request, form_id: int, db: Session = Depends(get_db)):
    return FormNameRead(form_name=form_service.get_form_name(db, form_id))


@router.get("/{form_id}/schema", response_model=FormSchemaRead)
@limiter.limit("60/minute")
def get_form_schema(
    request: Request,
    form_id: int,
    form_no: int | None = None,
    db: Session = Depends(get_db),
):
    return form_schema_service.get_public_form_schema(db, form_id, form_no)
