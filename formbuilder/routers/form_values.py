"""Submission endpoints.

Submitters are identified by the ``userid`` header; admin-only reads need a
bearer token.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from formbuilder.core.deps import get_current_admin, get_db, get_submitter_identifier
from formbuilder.routers.multipart import read_submission_payload
from formbuilder.schemas.submissions import (
    FormValuesRead,
    MessageResponse,
    SubmissionCheckRead,
    SubmissionCreatedResponse,
    SubmissionSummaryRead,
    SubmitterFormValuesRead,
)
from formbuilder.services import form_submission_service

router = APIRouter(prefix="/form-values", tags=["form-values"])


@router.post("/submit", response_model=SubmissionCreatedResponse, status_code=201)
async def submit_form(
    request: Request,
    identifier: str = Depends(get_submitter_identifier),
    db: Session = Depends(get_db),
):
    payload = await read_submission_payload(request)
    submission_id = form_submission_service.create_submission(
        db, payload.form_id, identifier, payload.values
    )
    return SubmissionCreatedResponse(
        message="Form values submitted successfully!", submission_id=submission_id
    )


@router.put("/values/{submission_id}", response_model=MessageResponse)
async def update_values(
    submission_id: UUID,
    request: Request,
    identifier: str = Depends(get_submitter_identifier),
    db: Session = Depends(get_db),
):
    payload = await read_submission_payload(request)
    form_submission_service.update_submission(
        db, submission_id, payload.form_id, identifier, payload.values
    )
    return MessageResponse(message="Form values updated successfully!")


@router.get("/values", response_model=SubmitterFormValuesRead)
def get_my_values(
    form_id: int,
    identifier: str = Depends(get_submitter_identifier),
    db: Session = Depends(get_db),
):
    return form_submission_service.list_submitter_values(db, form_id, identifier)


@router.get("/check-submission", response_model=SubmissionCheckRead)
def check_submission(
    form_id: int,
    identifier: str = Depends(get_submitter_identifier),
    db: Session = Depends(get_db),
):
    has_submission, submission_id = form_submission_service.check_existing_submission(
        db, form_id, identifier
    )
    return SubmissionCheckRead(has_submission=has_submission, submission_id=submission_id)


@router.delete("/values/{submission_id}", response_model=MessageResponse)
def delete_values(
    submission_id: UUID,
    form_id: int,
    identifier: str = Depends(get_submitter_identifier),
    db: Session = Depends(get_db),
):
    form_submission_service.soft_delete_submission(db, submission_id, form_id, identifier)
    return MessageResponse(message="Submission deleted successfully")


# =============================================================================
# Admin reads
# =============================================================================

@router.get("/values/all", response_model=FormValuesRead)
def get_all_values(form_id: int, db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    return form_submission_service.list_form_values(db, admin.id, form_id)


@router.get("/values/by-identifier", response_model=list[SubmitterFormValuesRead])
def get_values_by_identifier(
    identifier: str,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    return form_submission_service.list_values_by_identifier(db, admin.id, identifier)


@router.get("/submissions", response_model=list[SubmissionSummaryRead])
def list_submissions(db: Session = Depends(get_db), admin=Depends(get_current_admin)):
    return form_submission_service.list_submission_summaries(db, admin.id)
