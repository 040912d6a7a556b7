"""Dynamic column endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formbuilder.core.deps import get_current_admin, get_db
from formbuilder.core.exceptions import ColumnNotFound
from formbuilder.schemas.forms import ColumnRead, ColumnsCreateRequest, ColumnUpdate
from formbuilder.schemas.submissions import MessageResponse
from formbuilder.services import column_service

router = APIRouter(prefix="/columns", tags=["columns"])


@router.get("", response_model=list[ColumnRead])
def list_columns(db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    return column_service.list_columns(db, admin.id)


@router.post("", response_model=list[ColumnRead], status_code=201)
def create_columns(
    body: ColumnsCreateRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    return column_service.create_columns(
        db, admin.id, [(col.column_name, col.data_type) for col in body.columns]
    )


@router.put("/{column_id}", response_model=ColumnRead)
def update_column(
    column_id: int,
    body: ColumnUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    column = column_service.get_column(db, admin.id, column_id)
    if not column:
        raise ColumnNotFound()
    return column_service.update_column(
        db, column, body.column_name, body.data_type, body.is_active
    )


@router.delete("/{column_id}", response_model=MessageResponse)
def delete_column(
    column_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    column = column_service.get_column(db, admin.id, column_id)
    if not column:
        raise ColumnNotFound()
    column_service.soft_delete_column(db, column)
    return MessageResponse(message="Column soft deleted successfully")
