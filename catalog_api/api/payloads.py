"""Request payload parsing for product writes.

Product updates arrive either as JSON or as form data. In form data, the
"image" field can carry uploaded files, image references, or both.
"""

from typing import Any

from fastapi import HTTPException, Request, status
from starlette.datastructures import UploadFile

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_product_payload(
    request: Request,
    max_files: int = 10,
) -> tuple[dict[str, Any], list[bytes]]:
    """Read a product update payload.

    Args:
        request: Incoming request.
        max_files: Maximum number of uploaded files accepted.

    Returns:
        Tuple of (fields, uploaded file contents). Repeated "image" form
        values are collected into a list.

    Raises:
        HTTPException: If the body is not a JSON object or valid form.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form(max_files=max_files)
        data: dict[str, Any] = {}
        image_values: list[str] = []
        files: list[bytes] = []

        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == "image":
                    content = await value.read()
                    if content:
                        files.append(content)
                continue
            if key == "image":
                image_values.append(value)
            else:
                data[key] = value

        if len(image_values) == 1:
            data["image"] = image_values[0]
        elif image_values:
            data["image"] = image_values

        return data, files

    body = await request.body()
    if not body:
        return {}, []

    try:
        data = await request.json()
    except ValueError:
        data = None

    if not isinstance(data, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error_code": "INVALID_BODY",
                "message": "Request body must be a JSON object",
            },
        )
    return data, []
