from errors import ValidationError
from utils import parse_bool

UNIDADES_VALIDADE = {"dias": 1, "semanas": 7, "meses": 30}
FORMATOS_DATA = ("dd/mm/aaaa", "mm/dd/aaaa", "aaaa-mm-dd")

DEFAULTS = {
    "proposal_validity": 30,
    "validity_unit": "dias",
    "date_format": "dd/mm/aaaa",
    "autosave_drafts": True,
    "notif_email": True,
    "notif_followup": True,
    "notif_expiring_proposals": True,
    "notif_pending_payments": True,
}

_BOOLEANOS = (
    "autosave_drafts", "notif_email", "notif_followup",
    "notif_expiring_proposals", "notif_pending_payments",
)


def obter_configuracoes(store, user_id: str) -> dict:
    # criadas no primeiro acesso
    existentes = store.list("settings", user_id=user_id)
    if existentes:
        return existentes[0]
    return store.create("settings", {"user_id": user_id, **DEFAULTS})


def atualizar_configuracoes(store, user_id: str, dados: dict) -> dict:
    atual = obter_configuracoes(store, user_id)
    changes = {}

    if "proposal_validity" in dados:
        try:
            validade = int(dados["proposal_validity"])
        except (TypeError, ValueError):
            validade = 0
        if validade <= 0:
            raise ValidationError("Informe uma validade maior que zero.", campo="proposal_validity")
        changes["proposal_validity"] = validade

    if "validity_unit" in dados:
        if dados["validity_unit"] not in UNIDADES_VALIDADE:
            raise ValidationError("Unidade de validade inválida.", campo="validity_unit")
        changes["validity_unit"] = dados["validity_unit"]

    if "date_format" in dados:
        if dados["date_format"] not in FORMATOS_DATA:
            raise ValidationError("Formato de data inválido.", campo="date_format")
        changes["date_format"] = dados["date_format"]

    for k in _BOOLEANOS:
        if k in dados:
            changes[k] = parse_bool(dados[k])

    if not changes:
        return atual
    return store.update("settings", atual["id"], changes)


def validade_em_dias(config: dict) -> int:
    return int(config.get("proposal_validity") or 30) * UNIDADES_VALIDADE.get(config.get("validity_unit"), 1)
