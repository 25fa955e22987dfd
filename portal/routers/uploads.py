# portal/routers/uploads.py
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from portal.exceptions import InvalidInputError
from portal.services.images import MAX_UPLOAD_BYTES, ingest_image, validate_image
from portal.services.storage import ObjectStore, get_storage
from portal.utils.authz import require_admin

router = APIRouter(
    prefix="/api/upload",
    tags=["admin-uploads"],
    dependencies=[Depends(require_admin)],
)


@router.post("/image")
async def upload_image(
    image: Optional[UploadFile] = File(None),
    storage: ObjectStore = Depends(get_storage),
):
    """
    Multipart upload (field "image"). Produces a cover and a thumbnail in
    object storage and returns their URLs; persist them with
    POST /api/articles/{id}/cover.
    """
    if image is None or not image.filename:
        raise InvalidInputError("No file uploaded")

    # Cheap rejects before buffering the whole body
    validate_image(image.content_type, image.size or 0)
    data = await image.read(MAX_UPLOAD_BYTES + 1)

    result = await ingest_image(storage, data, image.filename, image.content_type)
    return {"success": True, **result}
