"""Option endpoints for dropdown, checkbox and radio columns."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formbuilder.core.deps import get_current_admin, get_db
from formbuilder.db.enums import OptionKind
from formbuilder.schemas.forms import OptionCreate, OptionRead
from formbuilder.schemas.submissions import MessageResponse
from formbuilder.services import option_service

router = APIRouter(prefix="/options", tags=["options"])


@router.post("/{kind}", response_model=OptionRead, status_code=201)
def add_option(
    kind: OptionKind,
    body: OptionCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    return option_service.add_option(
        db,
        owner_id=admin.id,
        kind=kind,
        column_id=body.column_id,
        form_id=body.form_id,
        name=body.name,
        is_active=body.is_active,
    )


@router.get("/{kind}", response_model=list[OptionRead])
def list_options(
    kind: OptionKind,
    column_id: int,
    form_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    return option_service.list_options(db, kind, column_id, form_id)


@router.delete("/{kind}/{option_id}", response_model=MessageResponse)
def delete_option(
    kind: OptionKind,
    option_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    option_service.soft_delete_option(db, admin.id, option_id)
    return MessageResponse(message=f"{kind.value.capitalize()} item deleted successfully")
