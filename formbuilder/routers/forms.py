"""Form definition endpoints for administrators."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from formbuilder.core.config import settings
from formbuilder.core.deps import get_current_admin, get_db
from formbuilder.schemas.forms import (
    DashboardCounts,
    FormCreate,
    FormCreatedResponse,
    FormRead,
    FormUpdate,
    ImageUploadResponse,
)
from formbuilder.schemas.submissions import MessageResponse
from formbuilder.services import form_service, storage_service

router = APIRouter(prefix="/forms", tags=["forms"])

BANNER_ALLOWED_MIME_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/gif", "image/webp"}
BANNER_UPLOAD_FOLDER = "banners"


def _to_read(form) -> FormRead:
    return FormRead(
        id=form.id,
        name=form.name,
        owner_id=form.owner_id,
        owner_name=form.owner.name if form.owner else None,
        created_at=form_service.as_utc(form.created_at),
        end_date=form_service.as_utc(form.end_date),
        fee=form.fee,
        is_active=form.is_active,
        banner_image=form.banner_image,
    )


@router.get("", response_model=list[FormRead])
def list_forms(db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    return [_to_read(form) for form in form_service.list_forms_for_owner(db, admin.id)]


@router.post("", response_model=FormCreatedResponse, status_code=201)
def create_form(
    body: FormCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    form = form_service.create_form(
        db,
        owner_id=admin.id,
        name=body.form_name,
        created_at=body.created_date,
        end_date=body.end_date,
        fee=body.fee,
        banner_image=body.image_or_logo,
    )
    return FormCreatedResponse(message="Form created successfully", new_form_id=form.id)


@router.get("/dashboard/counts", response_model=DashboardCounts)
def dashboard_counts(db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    return DashboardCounts(**form_service.dashboard_counts(db, admin.id))


@router.post("/upload/image", response_model=ImageUploadResponse)
async def upload_image(
    image: UploadFile = File(...),
    admin=Depends(get_current_admin),
):
    content_type = (image.content_type or "").split(";", 1)[0].strip().lower()
    if content_type not in BANNER_ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=400, detail="Only image uploads are allowed")
    data = await image.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if len(data) > settings.MAX_UPLOAD_SIZE_BYTES:
        raise HTTPException(status_code=400, detail="File too large")
    reference = storage_service.store_asset(
        data, image.filename, content_type, folder=f"{BANNER_UPLOAD_FOLDER}/{admin.id}"
    )
    return ImageUploadResponse(file_path=reference)


@router.get("/{form_id}", response_model=FormRead)
def get_form(form_id: int, db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    return _to_read(form_service.require_form(db, admin.id, form_id))


@router.put("/{form_id}", response_model=FormRead)
def update_form(
    form_id: int,
    body: FormUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    form = form_service.require_form(db, admin.id, form_id)
    form = form_service.update_form(
        db,
        form,
        name=body.form_name,
        created_at=body.created_date,
        end_date=body.end_date,
        fee=body.fee,
        banner_image=body.image_or_logo,
    )
    return _to_read(form)


@router.delete("/{form_id}", response_model=MessageResponse)
def delete_form(form_id: int, db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    form = form_service.require_form(db, admin.id, form_id)
    form_service.soft_delete_form(db, form)
    return MessageResponse(message="Form soft deleted successfully")
