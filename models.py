from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    String,
    DateTime,
    Boolean,
    ForeignKey,
    Text,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from database import Base


# Status de uma redação
STATUS_PENDENTE = "pendente"
STATUS_EM_CORRECAO = "em_correcao"  # declarado, nenhum fluxo produz
STATUS_CORRIGIDA = "corrigida"
ESSAY_STATUSES = (STATUS_PENDENTE, STATUS_EM_CORRECAO, STATUS_CORRIGIDA)

DIFICULDADES = ("Fácil", "Médio", "Difícil")

BLOCK_TEXTO = "texto"
BLOCK_IMAGEM = "imagem"

NOTA_MIN = 0
NOTA_MAX = 1000


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("credits >= 0", name="ck_users_credits_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)

    # créditos para envio de redações
    credits = Column(Integer, default=0, nullable=False)

    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    essays = relationship("Essay", back_populates="user")


class Tema(Base):
    """
    Proposta de redação.
    O conteúdo é uma lista ordenada de blocos (texto ou imagem).
    """

    __tablename__ = "temas"

    id = Column(Integer, primary_key=True, index=True)
    titulo = Column(String, nullable=False)
    dificuldade = Column(String, nullable=False, default="Médio")

    # no máximo um tema em destaque por convenção
    destaque = Column(Boolean, default=False, nullable=False)

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    blocks = relationship(
        "TemaBlock",
        back_populates="tema",
        cascade="all, delete-orphan",
        order_by="TemaBlock.position",
    )
    essays = relationship("Essay", back_populates="tema")


class TemaBlock(Base):
    __tablename__ = "tema_blocks"

    id = Column(Integer, primary_key=True, index=True)
    tema_id = Column(Integer, ForeignKey("temas.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    tipo = Column(String, nullable=False, default=BLOCK_TEXTO)  # "texto" ou "imagem"

    texto = Column(Text, nullable=True)
    imagem_url = Column(String, nullable=True)

    tema = relationship("Tema", back_populates="blocks")


class Essay(Base):
    """
    Redação enviada pelo aluno.
    Guarda:
    - URL do arquivo original
    - status (pendente -> corrigida)
    - nota e URL do arquivo corrigido, gravados juntos pelo admin
    """

    __tablename__ = "redacoes"
    __table_args__ = (
        CheckConstraint(
            f"nota IS NULL OR (nota >= {NOTA_MIN} AND nota <= {NOTA_MAX})",
            name="ck_redacoes_nota_range",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tema_id = Column(Integer, ForeignKey("temas.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    titulo = Column(String, nullable=False)
    arquivo_url = Column(String, nullable=False)
    arquivo_corrigido_url = Column(String, nullable=True)

    status = Column(String, nullable=False, default=STATUS_PENDENTE, index=True)
    nota = Column(Integer, nullable=True)
    corrigida_em = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="essays")
    tema = relationship("Tema", back_populates="essays")
