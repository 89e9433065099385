import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from models import BLOCK_IMAGEM, BLOCK_TEXTO, Essay, Tema, TemaBlock

logger = logging.getLogger(__name__)


def render_blocks(blocks: Iterable[TemaBlock]) -> List[Dict[str, Any]]:
    """
    Mantém a ordem dos blocos e pula os vazios
    (texto em branco, imagem sem URL). O banco guarda tudo como veio.
    """
    rendered = []
    for block in sorted(blocks, key=lambda b: (b.position or 0, b.id or 0)):
        if block.tipo == BLOCK_IMAGEM:
            url = (block.imagem_url or "").strip()
            if not url:
                continue
            rendered.append({"tipo": BLOCK_IMAGEM, "imagem_url": url})
        else:
            if not block.texto or not block.texto.strip():
                continue
            rendered.append({"tipo": BLOCK_TEXTO, "texto": block.texto})
    return rendered


def serialize_tema(tema: Tema) -> Dict[str, Any]:
    return {
        "id": tema.id,
        "titulo": tema.titulo,
        "dificuldade": tema.dificuldade,
        "destaque": bool(tema.destaque),
        "created_by": tema.created_by,
        "created_at": tema.created_at,
        "updated_at": tema.updated_at,
        "blocos": render_blocks(tema.blocks),
    }


def split_featured(temas: List[Tema]) -> Tuple[Optional[Tema], List[Tema]]:
    """
    Recebe os temas do mais novo para o mais antigo.
    O destaque mais recente ocupa o slot; outros marcados como destaque
    continuam na lista comum.
    """
    featured = None
    regular = []
    for tema in temas:
        if tema.destaque and featured is None:
            featured = tema
        else:
            regular.append(tema)
    return featured, regular


def list_temas(db: Session) -> List[Tema]:
    return db.query(Tema).order_by(Tema.created_at.desc(), Tema.id.desc()).all()


def get_tema(db: Session, tema_id: int) -> Tema:
    tema = db.get(Tema, tema_id)
    if not tema:
        raise HTTPException(status_code=404, detail="Tema não encontrado.")
    return tema


def _build_blocks(blocos) -> List[TemaBlock]:
    return [
        TemaBlock(
            position=index,
            tipo=bloco.tipo,
            texto=bloco.texto,
            imagem_url=bloco.imagem_url,
        )
        for index, bloco in enumerate(blocos or [])
    ]


def _clear_other_featured(db: Session, keep_id: Optional[int]) -> None:
    query = db.query(Tema).filter(Tema.destaque.is_(True))
    if keep_id is not None:
        query = query.filter(Tema.id != keep_id)
    query.update({Tema.destaque: False}, synchronize_session="fetch")


def create_tema(db: Session, payload, created_by: Optional[str]) -> Tema:
    tema = Tema(
        titulo=payload.titulo.strip(),
        dificuldade=payload.dificuldade,
        destaque=payload.destaque,
        created_by=created_by,
        blocks=_build_blocks(payload.blocos),
    )
    if not tema.titulo:
        raise HTTPException(status_code=400, detail="O título do tema é obrigatório.")

    db.add(tema)
    db.flush()
    if tema.destaque:
        _clear_other_featured(db, keep_id=tema.id)
    db.commit()
    db.refresh(tema)

    logger.info(
        "tema_created tema_id=%s destaque=%s created_by=%s",
        tema.id,
        tema.destaque,
        created_by,
    )
    return tema


def update_tema(db: Session, tema_id: int, payload) -> Tema:
    tema = get_tema(db, tema_id)
    titulo = payload.titulo.strip()
    if not titulo:
        raise HTTPException(status_code=400, detail="O título do tema é obrigatório.")

    tema.titulo = titulo
    tema.dificuldade = payload.dificuldade
    tema.destaque = payload.destaque
    tema.blocks = _build_blocks(payload.blocos)
    if tema.destaque:
        _clear_other_featured(db, keep_id=tema.id)
    db.add(tema)
    db.commit()
    db.refresh(tema)

    logger.info("tema_updated tema_id=%s destaque=%s", tema.id, tema.destaque)
    return tema


def delete_tema(db: Session, tema_id: int) -> None:
    tema = get_tema(db, tema_id)
    essays_count = (
        db.query(func.count(Essay.id)).filter(Essay.tema_id == tema.id).scalar() or 0
    )
    if essays_count:
        raise HTTPException(
            status_code=409,
            detail="Este tema possui redações enviadas e não pode ser excluído.",
        )
    db.delete(tema)
    db.commit()
    logger.info("tema_deleted tema_id=%s", tema_id)
