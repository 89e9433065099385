import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS
from database import init_db
from auth_routes import router as auth_router
from app_routes import router as app_router
from admin_routes import router as admin_router
from uploads_routes import router as uploads_router

logging.basicConfig(level=logging.INFO)

# Cria tabelas do banco
init_db()

app = FastAPI(
    title="Redacione",
    description=(
        "Plataforma para envio e correção de redações: alunos escolhem um tema "
        "e enviam o arquivo; administradores corrigem, gerenciam temas e créditos."
    ),
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["healthcheck"])
async def root():
    return {
        "status": "ok",
        "message": "Redacione API está ativa.",
        "modules": {
            "auth": ["/auth/register", "/auth/login", "/auth/me"],
            "app": [
                "/app/temas",
                "/app/redacoes",
                "/app/desempenho",
                "/app/creditos",
                "/app/uploads",
            ],
            "admin": ["/admin/users", "/admin/redacoes", "/admin/temas"],
        },
    }


app.include_router(auth_router)
app.include_router(app_router)
app.include_router(uploads_router)
app.include_router(admin_router)
