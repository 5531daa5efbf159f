import os


def _bool_env(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def build_postgres_dsn(user: str, password: str, host: str, port: str, name: str) -> str:
    return f"postgresql://{user}:{password}@{host}:{port}/{name}"


class Config:
    BASE_DIR = os.path.dirname(os.path.dirname(__file__))

    DB_USER = os.environ.get("DB_USER", "postgres")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "1234")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = os.environ.get("DB_PORT", "5432")
    DB_NAME = os.environ.get("DB_NAME", "sistema_nfe")
    DB_SCHEMA = os.environ.get("DB_SCHEMA", "sistema_nfe")
    DB_CLIENT_ENCODING = "UTF8"
    DB_POOL_MIN = _int_env("DB_POOL_MIN", 1)
    DB_POOL_MAX = _int_env("DB_POOL_MAX", 10)

    DATABASE_URL = os.environ.get("DATABASE_URL")
    DB_PATH = DATABASE_URL or build_postgres_dsn(DB_USER, DB_PASSWORD, DB_HOST, DB_PORT, DB_NAME)
    DB_AUTO_INIT = _bool_env("DB_AUTO_INIT", False)

    LOG_JSON = _bool_env("LOG_JSON", True)
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    def __init__(self):
        required = {
            "DB_USER": self.DB_USER,
            "DB_PASSWORD": self.DB_PASSWORD,
            "DB_HOST": self.DB_HOST,
            "DB_PORT": self.DB_PORT,
            "DB_NAME": self.DB_NAME,
        }
        missing = sorted(key for key, value in required.items() if not str(value or "").strip())
        if missing:
            raise RuntimeError(f"Configurações do banco de dados não encontradas: {', '.join(missing)}")
        try:
            int(str(self.DB_PORT).strip())
        except ValueError as exc:
            raise RuntimeError(f"DB_PORT invalida: {self.DB_PORT!r}") from exc
