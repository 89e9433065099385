from datetime import datetime
from typing import List, Optional, Literal

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: Optional[str] = None
    photo_url: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserRead(BaseModel):
    id: int
    email: EmailStr
    full_name: Optional[str]
    photo_url: Optional[str] = None
    credits: int
    is_admin: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    user_id: int
    email: EmailStr


# ============================
# Créditos
# ============================


class CreditAction(BaseModel):
    acao: Literal["adicionar", "remover", "zerar"]
    quantidade: int = Field(default=0, ge=0)


class CreditsRead(BaseModel):
    user_id: int
    credits: int


# ============================
# Temas
# ============================


class TemaBlockIn(BaseModel):
    tipo: Literal["texto", "imagem"] = "texto"
    texto: Optional[str] = None
    imagem_url: Optional[str] = None


class TemaIn(BaseModel):
    titulo: str = Field(min_length=1)
    dificuldade: Literal["Fácil", "Médio", "Difícil"] = "Médio"
    destaque: bool = False
    blocos: List[TemaBlockIn] = []


class TemaBlockOut(BaseModel):
    tipo: str
    texto: Optional[str] = None
    imagem_url: Optional[str] = None


class TemaOut(BaseModel):
    id: int
    titulo: str
    dificuldade: str
    destaque: bool
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    blocos: List[TemaBlockOut] = []


class TemasListOut(BaseModel):
    destaque: Optional[TemaOut] = None
    temas: List[TemaOut] = []


# ============================
# Redações
# ============================


class EssayCreate(BaseModel):
    tema_id: int
    titulo: str
    arquivo_url: str


class EssayGrade(BaseModel):
    nota: int
    arquivo_corrigido_url: str


class EssayRead(BaseModel):
    id: int
    titulo: str
    arquivo_url: str
    arquivo_corrigido_url: Optional[str] = None
    status: Literal["pendente", "em_correcao", "corrigida"]
    user_id: int
    tema_id: int
    nota: Optional[int] = None
    created_at: Optional[datetime] = None
    corrigida_em: Optional[datetime] = None

    class Config:
        from_attributes = True


class EssayCreated(BaseModel):
    redacao: EssayRead
    credits: int


class AdminEssayRead(EssayRead):
    user_email: Optional[str] = None


class HistoricoPonto(BaseModel):
    data: str
    nota: int


class EssayStats(BaseModel):
    redacoes_feitas: int = 0
    media_geral: int = 0
    melhor_nota: int = 0
    ultima_nota: int = 0
    historico: List[HistoricoPonto] = []


class UploadOut(BaseModel):
    url: str
