from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import schemas
from auth_routes import get_current_user
from database import get_db
from essays_service import (
    create_essay,
    essay_stats,
    get_user_essay,
    list_user_essays,
)
from models import User
from temas_service import get_tema, list_temas, serialize_tema, split_featured

router = APIRouter(prefix="/app", tags=["app"])


# ============================
# Temas
# ============================


@router.get("/temas", response_model=schemas.TemasListOut)
def listar_temas(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Lista de temas com o destaque separado da lista comum.
    """
    featured, regular = split_featured(list_temas(db))
    return {
        "destaque": serialize_tema(featured) if featured else None,
        "temas": [serialize_tema(tema) for tema in regular],
    }


@router.get("/temas/{tema_id}", response_model=schemas.TemaOut)
def detalhar_tema(
    tema_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return serialize_tema(get_tema(db, tema_id))


# ============================
# Créditos
# ============================


@router.get("/creditos", response_model=schemas.CreditsRead)
def meus_creditos(current_user: User = Depends(get_current_user)):
    return {"user_id": current_user.id, "credits": current_user.credits or 0}


# ============================
# Redações do aluno
# ============================


@router.post("/redacoes", response_model=schemas.EssayCreated, status_code=201)
def enviar_redacao(
    payload: schemas.EssayCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    - exige crédito > 0 (checado antes de gravar)
    - cria a redação como "pendente"
    - debita 1 crédito
    """
    essay = create_essay(
        db,
        current_user,
        tema_id=payload.tema_id,
        titulo=payload.titulo,
        arquivo_url=payload.arquivo_url,
    )
    user_db = db.get(User, current_user.id)
    return {
        "redacao": schemas.EssayRead.model_validate(essay),
        "credits": user_db.credits,
    }


@router.get("/redacoes", response_model=List[schemas.EssayRead])
def minhas_redacoes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_user_essays(db, current_user.id)


@router.get("/redacoes/{essay_id}", response_model=schemas.EssayRead)
def detalhar_redacao(
    essay_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_user_essay(db, current_user, essay_id)


@router.get("/desempenho", response_model=schemas.EssayStats)
def desempenho(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Estatísticas do aluno: total enviado, média, melhor e última nota,
    e o histórico das últimas correções.
    """
    return essay_stats(list_user_essays(db, current_user.id))
