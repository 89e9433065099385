from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

import schemas
from auth_routes import require_admin, serialize_user
from credits_service import adjust_credits
from database import get_db
from essays_service import get_essay, grade_essay, list_essays
from models import Essay, User
from temas_service import (
    create_tema,
    delete_tema,
    list_temas,
    serialize_tema,
    update_tema,
)

router = APIRouter(prefix="/admin", tags=["admin"])


def _admin_essay(essay: Essay) -> schemas.AdminEssayRead:
    data = schemas.EssayRead.model_validate(essay).model_dump()
    return schemas.AdminEssayRead(
        **data,
        user_email=essay.user.email if essay.user else None,
    )


# ============================
# Usuários e créditos
# ============================


@router.get("/users", response_model=List[schemas.UserRead])
def listar_usuarios(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return [serialize_user(user) for user in users]


@router.post("/users/{user_id}/creditos", response_model=schemas.CreditsRead)
def atualizar_creditos(
    user_id: int,
    payload: schemas.CreditAction,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user_db = adjust_credits(db, user_id, payload.quantidade, payload.acao)
    return {"user_id": user_db.id, "credits": user_db.credits}


# ============================
# Redações
# ============================


@router.get("/redacoes", response_model=List[schemas.AdminEssayRead])
def listar_redacoes(
    status: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return [_admin_essay(essay) for essay in list_essays(db, status=status)]


@router.get("/redacoes/{essay_id}", response_model=schemas.AdminEssayRead)
def detalhar_redacao(
    essay_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return _admin_essay(get_essay(db, essay_id))


@router.post("/redacoes/{essay_id}/correcao", response_model=schemas.AdminEssayRead)
def corrigir_redacao(
    essay_id: int,
    payload: schemas.EssayGrade,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Grava nota + arquivo corrigido e marca a redação como "corrigida",
    tudo em uma única atualização.
    """
    essay = grade_essay(
        db,
        essay_id,
        nota=payload.nota,
        arquivo_corrigido_url=payload.arquivo_corrigido_url,
    )
    return _admin_essay(essay)


# ============================
# Temas
# ============================


@router.get("/temas", response_model=List[schemas.TemaOut])
def listar_temas_admin(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return [serialize_tema(tema) for tema in list_temas(db)]


@router.post("/temas", response_model=schemas.TemaOut, status_code=201)
def criar_tema(
    payload: schemas.TemaIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return serialize_tema(create_tema(db, payload, created_by=current_user.email))


@router.put("/temas/{tema_id}", response_model=schemas.TemaOut)
def editar_tema(
    tema_id: int,
    payload: schemas.TemaIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return serialize_tema(update_tema(db, tema_id, payload))


@router.delete("/temas/{tema_id}", status_code=204)
def excluir_tema(
    tema_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    delete_tema(db, tema_id)
    return Response(status_code=204)
