import os


def _get_int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


def _get_list_env(name: str, default: str = "") -> set:
    return {
        item.strip()
        for item in os.environ.get(name, default).split(",")
        if item.strip()
    }


# Banco
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./redacione.db")

# JWT
JWT_SECRET = os.environ.get("JWT_SECRET", "mude-esta-chave-em-producao")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = _get_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)

# Admins por e-mail (além do campo is_admin)
ADMIN_EMAILS = {email.lower() for email in _get_list_env("ADMIN_EMAILS")}

# Créditos dados no primeiro cadastro
INITIAL_CREDITS = max(0, _get_int_env("INITIAL_CREDITS", 0))

# Upload (10 MB)
MAX_UPLOAD_BYTES = _get_int_env("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "redacoes")

# Cloudinary
CLOUD_NAME = os.environ.get("CLOUD_NAME")
CLOUD_API_KEY = os.environ.get("API_KEY")
CLOUD_API_SECRET = os.environ.get("API_SECRET")

# CORS – "*" por padrão; em produção, o domínio do front
CORS_ORIGINS = sorted(_get_list_env("CORS_ORIGINS", "*"))

# Rate limit
LOGIN_RATE_LIMIT = _get_int_env("LOGIN_RATE_LIMIT", 10)
LOGIN_RATE_WINDOW_SECONDS = _get_int_env("LOGIN_RATE_WINDOW_SECONDS", 60)
UPLOAD_RATE_LIMIT = _get_int_env("UPLOAD_RATE_LIMIT", 20)
UPLOAD_RATE_WINDOW_SECONDS = _get_int_env("UPLOAD_RATE_WINDOW_SECONDS", 3600)

# Só confie em X-Forwarded-For atrás de um proxy conhecido
TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "false").lower() == "true"
