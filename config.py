"""
Configuración de la aplicación
Todas las variables se leen del entorno (.env) con valores por defecto para desarrollo
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Database
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "postgres")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "getaway")
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# Security (JWT)
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Email (SMTP)
EMAIL_HOST = os.getenv("EMAIL_HOST", "")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_USER = os.getenv("EMAIL_USER", "")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD", "")
EMAIL_USE_TLS = _env_bool("EMAIL_USE_TLS", "true")
EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", "Miami Get Away")
EMAIL_ENABLED = bool(EMAIL_HOST)

# Scheduler (barrido diario de estados)
SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", "false")
SCHEDULER_CRON_HOUR = int(os.getenv("SCHEDULER_CRON_HOUR", "0"))
SCHEDULER_CRON_MINUTE = int(os.getenv("SCHEDULER_CRON_MINUTE", "0"))

# Zona horaria del negocio
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/New_York")

# CORS
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]

# Archivos y logs
PDF_OUTPUT_DIR = os.getenv("PDF_OUTPUT_DIR", os.path.join(os.getcwd(), "temp"))
LOG_FILE = os.getenv("LOG_FILE", "booking_logs.txt")

# Rate limiting
RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
RATE_LIMIT_LOGIN = os.getenv("RATE_LIMIT_LOGIN", "5/minute")
REDIS_URL = os.getenv("REDIS_URL", "memory://")
RATE_LIMIT_ENABLED = _env_bool("RATE_LIMIT_ENABLED", "true")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
