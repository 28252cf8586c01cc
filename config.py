import os

from dotenv import load_dotenv

load_dotenv()

# CONTRATO_* -> chave da política de cláusulas (ver contract_service.POLITICA_PADRAO)
_POLITICA_ENV = {
    "rodadas_revisao": "CONTRATO_RODADAS_REVISAO",
    "prazo_revisao_dias_uteis": "CONTRATO_PRAZO_REVISAO_DIAS",
    "suporte_dias": "CONTRATO_SUPORTE_DIAS",
    "multa_percentual": "CONTRATO_MULTA_PERCENTUAL",
    "juros_mensal_percentual": "CONTRATO_JUROS_MENSAL",
    "suspensao_dias": "CONTRATO_SUSPENSAO_DIAS",
    "aviso_rescisao_dias": "CONTRATO_AVISO_RESCISAO_DIAS",
    "confidencialidade_anos": "CONTRATO_CONFIDENCIALIDADE_ANOS",
}


def _politica_contrato() -> dict:
    return {k: int(os.environ[v]) for k, v in _POLITICA_ENV.items() if os.getenv(v)}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

    # Local: usa SQLite (arquivo local.db na pasta do projeto)
    # Produção: DATABASE_URL do Postgres
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///local.db")

    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Pasta onde os PDFs ficam localmente
    STORAGE_DIR = os.getenv("STORAGE_DIR", os.path.abspath("./data"))

    # Cache local usado quando o banco não responde
    LOCAL_STORE_PATH = os.getenv("LOCAL_STORE_PATH", os.path.join(STORAGE_DIR, "local_store.json"))

    TRIAL_DAYS = int(os.getenv("TRIAL_DAYS", "7"))
    BLOCKED_RETENTION_DAYS = int(os.getenv("BLOCKED_RETENTION_DAYS", "60"))
    TMP_PDF_MAX_AGE_HOURS = int(os.getenv("TMP_PDF_MAX_AGE_HOURS", "24"))

    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
    PAYMENT_FUNCTIONS_URL = os.getenv("PAYMENT_FUNCTIONS_URL", f"{SUPABASE_URL}/functions/v1")
    APP_URL = os.getenv("APP_URL", "http://localhost:5000")

    # cancelamento da assinatura e remoção do cliente ao excluir a conta
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")

    LIBREOFFICE_PATH = os.getenv("LIBREOFFICE_PATH", "soffice")

    POLITICA_CONTRATO = _politica_contrato()
