import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from models import User

logger = logging.getLogger(__name__)

ACAO_ADICIONAR = "adicionar"
ACAO_REMOVER = "remover"
ACAO_ZERAR = "zerar"


def apply_credit_action(current: Optional[int], amount: int, action: str) -> int:
    """
    Regra do saldo de créditos:
    - adicionar: saldo + quantidade
    - remover: saldo - quantidade, nunca abaixo de zero
    - zerar: 0
    """
    if amount is None or amount < 0:
        raise ValueError("quantidade deve ser >= 0")
    balance = current or 0
    if action == ACAO_ADICIONAR:
        return balance + amount
    if action == ACAO_REMOVER:
        return max(0, balance - amount)
    if action == ACAO_ZERAR:
        return 0
    raise ValueError(f"ação de crédito inválida: {action}")


def adjust_credits(db: Session, user_id: int, amount: int, action: str) -> User:
    # leitura + escrita sem lock: a última escrita vence
    user_db = db.get(User, user_id)
    if not user_db:
        raise HTTPException(status_code=404, detail="Usuário não encontrado.")

    before = user_db.credits or 0
    try:
        after = apply_credit_action(before, amount, action)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user_db.credits = after
    db.add(user_db)
    db.commit()
    db.refresh(user_db)

    logger.info(
        "credits_adjusted user_id=%s action=%s amount=%s before=%s after=%s",
        user_id,
        action,
        amount,
        before,
        after,
    )
    return user_db


def require_credits(user: User) -> None:
    if user.credits is None or user.credits <= 0:
        raise HTTPException(
            status_code=402,
            detail="Você não possui créditos suficientes para enviar uma redação.",
        )


def debit_credit(db: Session, user: User) -> User:
    """
    Debita 1 crédito com um UPDATE condicional (credits > 0), de modo que
    dois envios simultâneos não gastem o mesmo crédito.
    Não faz commit: quem chama grava junto com a redação.
    """
    debited = (
        db.query(User)
        .filter(User.id == user.id, User.credits > 0)
        .update({User.credits: User.credits - 1}, synchronize_session=False)
    )
    if not debited:
        raise HTTPException(
            status_code=402,
            detail="Você não possui créditos suficientes para enviar uma redação.",
        )

    user_db = db.get(User, user.id)
    # a cópia em memória ainda tem o saldo antigo
    db.expire(user_db, ["credits"])
    return user_db
