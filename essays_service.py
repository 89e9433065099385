import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from credits_service import debit_credit, require_credits
from models import (
    ESSAY_STATUSES,
    NOTA_MAX,
    NOTA_MIN,
    STATUS_CORRIGIDA,
    STATUS_PENDENTE,
    Essay,
    Tema,
    User,
)

logger = logging.getLogger(__name__)

HISTORICO_MAX_PONTOS = 10


def _ordered_desc(query):
    return query.order_by(Essay.created_at.desc(), Essay.id.desc())


def create_essay(
    db: Session,
    user: User,
    *,
    tema_id: int,
    titulo: str,
    arquivo_url: str,
) -> Essay:
    """
    Cria a redação como "pendente" e debita 1 crédito no mesmo commit.
    Todas as validações acontecem antes de qualquer escrita.
    """
    user_db = db.get(User, user.id)
    if not user_db:
        raise HTTPException(status_code=404, detail="Usuário não encontrado.")
    require_credits(user_db)

    titulo = (titulo or "").strip()
    if not titulo:
        raise HTTPException(
            status_code=400, detail="O título da redação não pode estar vazio."
        )
    arquivo_url = (arquivo_url or "").strip()
    if not arquivo_url:
        raise HTTPException(status_code=400, detail="Nenhum arquivo enviado.")

    tema = db.get(Tema, tema_id)
    if not tema:
        raise HTTPException(status_code=404, detail="Tema não encontrado.")

    essay = Essay(
        user_id=user_db.id,
        tema_id=tema.id,
        titulo=titulo,
        arquivo_url=arquivo_url,
        status=STATUS_PENDENTE,
    )
    debit_credit(db, user_db)

    db.add(essay)
    db.commit()
    db.refresh(essay)
    db.refresh(user_db)

    logger.info(
        "essay_created essay_id=%s user_id=%s tema_id=%s credits=%s",
        essay.id,
        user_db.id,
        tema.id,
        user_db.credits,
    )
    return essay


def grade_essay(
    db: Session,
    essay_id: int,
    *,
    nota: int,
    arquivo_corrigido_url: str,
) -> Essay:
    essay = db.get(Essay, essay_id)
    if not essay:
        raise HTTPException(status_code=404, detail="Redação não encontrada.")

    if isinstance(nota, bool) or not isinstance(nota, int):
        raise HTTPException(status_code=400, detail="A nota deve ser um número inteiro.")
    if nota < NOTA_MIN or nota > NOTA_MAX:
        raise HTTPException(
            status_code=400,
            detail=f"A nota deve estar entre {NOTA_MIN} e {NOTA_MAX}.",
        )
    arquivo_corrigido_url = (arquivo_corrigido_url or "").strip()
    if not arquivo_corrigido_url:
        raise HTTPException(
            status_code=400, detail="Envie o arquivo da redação corrigida."
        )

    previous_status = essay.status
    essay.status = STATUS_CORRIGIDA
    essay.nota = nota
    essay.arquivo_corrigido_url = arquivo_corrigido_url
    essay.corrigida_em = datetime.now(timezone.utc)
    db.add(essay)
    db.commit()
    db.refresh(essay)

    logger.info(
        "essay_graded essay_id=%s nota=%s previous_status=%s",
        essay.id,
        nota,
        previous_status,
    )
    return essay


def list_user_essays(db: Session, user_id: int) -> List[Essay]:
    return _ordered_desc(db.query(Essay).filter(Essay.user_id == user_id)).all()


def list_essays(db: Session, status: Optional[str] = None) -> List[Essay]:
    query = db.query(Essay)
    if status is not None:
        if status not in ESSAY_STATUSES:
            raise HTTPException(status_code=400, detail="Status inválido.")
        query = query.filter(Essay.status == status)
    return _ordered_desc(query).all()


def get_essay(db: Session, essay_id: int) -> Essay:
    essay = db.get(Essay, essay_id)
    if not essay:
        raise HTTPException(status_code=404, detail="Redação não encontrada.")
    return essay


def get_user_essay(db: Session, user: User, essay_id: int) -> Essay:
    essay = db.get(Essay, essay_id)
    # redação de outro aluno responde igual a inexistente
    if not essay or essay.user_id != user.id:
        raise HTTPException(status_code=404, detail="Redação não encontrada.")
    return essay


def _chronological_key(essay: Essay):
    return (essay.created_at is not None, essay.created_at, essay.id or 0)


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def essay_stats(essays: Iterable[Essay]) -> Dict[str, Any]:
    """
    Painel de desempenho do aluno.
    Conta todas as redações; média, melhor, última nota e histórico
    consideram só as corrigidas com nota.
    """
    essays = list(essays)
    stats: Dict[str, Any] = {
        "redacoes_feitas": len(essays),
        "media_geral": 0,
        "melhor_nota": 0,
        "ultima_nota": 0,
        "historico": [],
    }

    corrigidas = sorted(
        (e for e in essays if e.status == STATUS_CORRIGIDA and e.nota is not None),
        key=_chronological_key,
    )
    if not corrigidas:
        return stats

    notas = [e.nota for e in corrigidas]
    stats["media_geral"] = _round_half_up(sum(notas) / len(notas))
    stats["melhor_nota"] = max(notas)
    stats["ultima_nota"] = corrigidas[-1].nota
    stats["historico"] = [
        {
            "data": e.created_at.strftime("%d/%m") if e.created_at else "",
            "nota": e.nota,
        }
        for e in corrigidas[-HISTORICO_MAX_PONTOS:]
    ]
    return stats
