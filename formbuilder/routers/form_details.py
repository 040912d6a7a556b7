"""Form detail endpoints: placing columns into forms."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formbuilder.core.deps import get_current_admin, get_db
from formbuilder.schemas.forms import (
    BindingCreate,
    BindingCreatedResponse,
    BindingRead,
    BindingUpdate,
    BindingUsageRead,
    FormLayoutRead,
    NextFormNoRead,
    ReadOnlyUpdate,
    SequenceUpdate,
)
from formbuilder.schemas.submissions import MessageResponse
from formbuilder.services import form_detail_service, form_service

router = APIRouter(prefix="/form-details", tags=["form-details"])


@router.get("", response_model=list[FormLayoutRead])
def list_layouts(
    form_id: int | None = None,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    return form_detail_service.list_owner_form_layouts(db, admin.id, form_id)


@router.get("/next-form-no/{form_id}", response_model=NextFormNoRead)
def next_form_no(form_id: int, db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    form_service.require_form(db, admin.id, form_id)
    return NextFormNoRead(next_form_no=form_detail_service.next_form_no(db, form_id))


@router.post("", response_model=BindingCreatedResponse, status_code=201)
def add_binding(
    body: BindingCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    binding = form_detail_service.add_binding(
        db,
        owner_id=admin.id,
        form_id=body.form_id,
        column_id=body.column_id,
        sequence_no=body.sequence_no,
        form_no=body.form_no,
        is_active=body.is_active,
        banner_image=body.banner_image,
        is_read_only=body.is_read_only,
    )
    return BindingCreatedResponse(
        message="Form detail inserted successfully", id=binding.id, form_no=binding.form_no
    )


@router.put("/columns/{column_id}", response_model=BindingRead)
def update_binding(
    column_id: int,
    body: BindingUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    binding = form_detail_service.update_binding(
        db,
        owner_id=admin.id,
        column_id=column_id,
        form_id=body.form_id,
        column_name=body.column_name,
        data_type=body.data_type,
        sequence_no=body.sequence_no,
        is_active=body.is_active,
        banner_image=body.banner_image,
        is_read_only=body.is_read_only,
    )
    return form_detail_service.to_read(binding)


@router.put("/{binding_id}/sequence", response_model=BindingRead)
def update_sequence(
    binding_id: int,
    body: SequenceUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    binding = form_detail_service.require_binding(db, admin.id, binding_id)
    return form_detail_service.to_read(
        form_detail_service.update_sequence(db, binding, body.sequence_no)
    )


@router.put("/{binding_id}/read-only", response_model=BindingRead)
def set_read_only(
    binding_id: int,
    body: ReadOnlyUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    binding = form_detail_service.require_binding(db, admin.id, binding_id)
    return form_detail_service.to_read(
        form_detail_service.set_read_only(db, binding, body.is_read_only)
    )


@router.get("/{binding_id}/usage", response_model=BindingUsageRead)
def binding_usage(binding_id: int, db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    binding = form_detail_service.require_binding(db, admin.id, binding_id)
    return BindingUsageRead(in_use=form_detail_service.binding_in_use(db, binding))


@router.get("/{binding_id}", response_model=BindingRead)
def get_binding(binding_id: int, db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    return form_detail_service.to_read(
        form_detail_service.require_binding(db, admin.id, binding_id)
    )


@router.delete("/{binding_id}", response_model=MessageResponse)
def delete_binding(
    binding_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    binding = form_detail_service.require_binding(db, admin.id, binding_id)
    form_detail_service.soft_delete_binding(db, binding)
    return MessageResponse(message="Form detail soft deleted successfully")
