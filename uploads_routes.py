import logging
from datetime import datetime
from io import BytesIO
from pathlib import Path

import cloudinary
import cloudinary.uploader
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

import schemas
from auth_routes import get_current_user
from config import (
    CLOUD_API_KEY,
    CLOUD_API_SECRET,
    CLOUD_NAME,
    MAX_UPLOAD_BYTES,
    UPLOAD_FOLDER,
    UPLOAD_RATE_LIMIT,
    UPLOAD_RATE_WINDOW_SECONDS,
)
from models import User
from rate_limiter import enforce_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/app", tags=["uploads"])

ALLOWED_CONTENT_TYPES = {"application/pdf", "image/jpeg", "image/jpg", "image/png"}

cloudinary.config(
    cloud_name=CLOUD_NAME,
    api_key=CLOUD_API_KEY,
    api_secret=CLOUD_API_SECRET,
    secure=True,
)
if not CLOUD_NAME:
    logger.warning("Cloudinary não configurado (CLOUD_NAME vazio). Uploads falharão.")


def _validate_upload(content_type: str, size: int) -> None:
    if size == 0:
        raise HTTPException(status_code=400, detail="Nenhum arquivo enviado.")
    if size > MAX_UPLOAD_BYTES:
        limite_mb = MAX_UPLOAD_BYTES // (1024 * 1024)
        raise HTTPException(
            status_code=400,
            detail=f"O arquivo deve ter no máximo {limite_mb}MB.",
        )
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Tipo de arquivo não permitido. Use PDF ou imagens (JPG, PNG).",
        )


@router.post("/uploads", response_model=schemas.UploadOut)
async def enviar_arquivo(
    arquivo: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    """
    Sobe o arquivo da redação para o Cloudinary e devolve só a URL.
    O banco nunca recebe os bytes.
    """
    enforce_rate_limit(
        f"upload:{current_user.id}",
        limit=UPLOAD_RATE_LIMIT,
        window_seconds=UPLOAD_RATE_WINDOW_SECONDS,
    )

    content_type = (arquivo.content_type or "").lower()
    # tamanho declarado: recusa antes de carregar o corpo em memória
    if arquivo.size is not None and arquivo.size > MAX_UPLOAD_BYTES:
        _validate_upload(content_type, arquivo.size)
    raw_bytes = await arquivo.read()
    _validate_upload(content_type, len(raw_bytes))

    stem = Path(arquivo.filename or "redacao").stem
    try:
        upload_result = cloudinary.uploader.upload(
            BytesIO(raw_bytes),
            resource_type="auto",
            folder=f"{UPLOAD_FOLDER}/{current_user.id}",
            public_id=f"{stem}_{int(datetime.utcnow().timestamp() * 1000)}",
            context={"user_id": str(current_user.id), "original_name": arquivo.filename or ""},
        )
    except Exception as e:
        logger.exception("upload_failed user_id=%s", current_user.id)
        raise HTTPException(
            status_code=500, detail=f"Erro ao fazer upload do arquivo: {str(e)}"
        )

    url = upload_result.get("secure_url")
    if not url:
        logger.error("upload_without_url user_id=%s", current_user.id)
        raise HTTPException(status_code=500, detail="Erro ao fazer upload do arquivo.")

    logger.info(
        "upload_done user_id=%s bytes=%s content_type=%s",
        current_user.id,
        len(raw_bytes),
        content_type,
    )
    return {"url": url}
