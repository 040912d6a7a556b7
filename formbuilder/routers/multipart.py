"""Parses multipart/JSON submission bodies into raw column values."""

from dataclasses import dataclass, field
from typing import Any

from fastapi import HTTPException, Request
from starlette.datastructures import UploadFile

from formbuilder.services.submission_validator import (
    UploadedAsset,
    normalize_raw_values,
    parse_column_values,
)


@dataclass
class SubmissionPayload:
    form_id: int
    values: dict[int, Any]
    fields: dict[str, str] = field(default_factory=dict)


def _parse_form_id(raw: Any) -> int:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="formId is required")


async def read_submission_payload(request: Request) -> SubmissionPayload:
    """
    Read ``formId``, a ``columnValues`` JSON object and any fields or files
    named by column id. Other text fields are returned untouched in ``fields``.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        body = await request.json()
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Request body must be an object")
        form_id = _parse_form_id(body.get("formId", body.get("form_id")))
        column_values = body.get("columnValues", {})
        if isinstance(column_values, str):
            values = parse_column_values(column_values)
        elif isinstance(column_values, dict):
            values = normalize_raw_values(column_values)
        else:
            raise HTTPException(status_code=400, detail="columnValues must be an object")
        fields = {k: str(v) for k, v in body.items() if isinstance(v, (str, int, float))}
        return SubmissionPayload(form_id=form_id, values=values, fields=fields)

    form = await request.form()
    form_id = _parse_form_id(form.get("formId", form.get("form_id")))
    values = parse_column_values(form.get("columnValues"))
    fields: dict[str, str] = {}

    for key, item in form.multi_items():
        if isinstance(item, UploadFile):
            if key.strip().isdigit():
                values[int(key)] = UploadedAsset(
                    filename=item.filename or "upload",
                    content_type=item.content_type,
                    data=await item.read(),
                )
            continue
        if key.strip().isdigit():
            values[int(key)] = item
        else:
            fields[key] = item
    return SubmissionPayload(form_id=form_id, values=values, fields=fields)
