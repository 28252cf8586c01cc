import logging
import time
from datetime import timedelta
from pathlib import Path

from account_service import excluir_conta
from errors import AppError
from utils import agora_utc, parse_datetime

logger = logging.getLogger(__name__)


def cleanup_expired_accounts(store, identity, retention_days: int, agora=None, billing=None) -> int:
    """
    Exclui contas do plano free bloqueadas (expired/blocked) há mais de retention_days.
    Retorna quantas contas excluiu.
    """
    agora = parse_datetime(agora) or agora_utc()
    cutoff = agora - timedelta(days=retention_days)

    removed = 0
    for f in store.list("freelancers", plan_type="free"):
        if f.get("subscription_status") not in ("expired", "blocked"):
            continue
        bloqueio = parse_datetime(f.get("blocked_at"))
        if bloqueio is None or bloqueio >= cutoff:
            continue

        try:
            excluir_conta(store, identity, f["user_id"], billing=billing)
            removed += 1
        except AppError as e:
            # a próxima limpeza tenta de novo
            logger.error("Falha ao excluir conta expirada %s: %s", f["user_id"], e)

    if removed:
        logger.info("%s conta(s) expirada(s) excluída(s)", removed)
    return removed


def cleanup_tmp_pdfs(tmp_dir: str, max_age_hours: int = 24) -> int:
    """
    Apaga PDFs temporários mais antigos que max_age_hours.
    Retorna quantos apagou.
    """
    p = Path(tmp_dir)
    if not p.exists():
        return 0

    now = time.time()
    cutoff = now - (max_age_hours * 3600)

    removed = 0
    for f in p.glob("*.pdf"):
        try:
            if f.stat().st_mtime < cutoff:
                f.unlink()
                removed += 1
        except OSError as e:
            logger.warning("Não foi possível apagar %s: %s", f.name, e)

    return removed
