"""
Status de propostas e contratos.

É só um conjunto rotulado: qualquer status pode ir para qualquer outro pela
seleção do usuário. A única transição automática é rascunho -> enviada na
primeira geração do documento de uma proposta.
"""
from errors import ValidationError

PROPOSTA_RASCUNHO = "rascunho"
PROPOSTA_ENVIADA = "enviada"
PROPOSTA_ACEITA = "aceita"
PROPOSTA_ENCERRADA = "encerrada"
PROPOSTA_EXPIRADA = "expirada"

PROPOSTA_STATUS = (
    PROPOSTA_RASCUNHO,
    PROPOSTA_ENVIADA,
    PROPOSTA_ACEITA,
    PROPOSTA_ENCERRADA,
    PROPOSTA_EXPIRADA,
)

PROPOSTA_LABELS = {
    PROPOSTA_RASCUNHO: "Rascunho",
    PROPOSTA_ENVIADA: "Enviada",
    PROPOSTA_ACEITA: "Aceita",
    PROPOSTA_ENCERRADA: "Encerrada",
    PROPOSTA_EXPIRADA: "Expirada",
}

CONTRATO_RASCUNHO = "rascunho"
CONTRATO_ATIVO = "ativo"
CONTRATO_FINALIZADO = "finalizado"
CONTRATO_CANCELADO = "cancelado"

CONTRATO_STATUS = (
    CONTRATO_RASCUNHO,
    CONTRATO_ATIVO,
    CONTRATO_FINALIZADO,
    CONTRATO_CANCELADO,
)

CONTRATO_LABELS = {
    CONTRATO_RASCUNHO: "Rascunho",
    CONTRATO_ATIVO: "Ativo",
    CONTRATO_FINALIZADO: "Finalizado",
    CONTRATO_CANCELADO: "Cancelado",
}

# status que contam como fechamento
PROPOSTA_FECHADAS = (PROPOSTA_ACEITA, PROPOSTA_ENCERRADA)


def validar_status_proposta(status: str) -> str:
    if status not in PROPOSTA_STATUS:
        raise ValidationError("Status de proposta inválido.", campo="status")
    return status


def validar_status_contrato(status: str) -> str:
    if status not in CONTRATO_STATUS:
        raise ValidationError("Status de contrato inválido.", campo="status")
    return status


def status_apos_gerar(status: str) -> str:
    if status == PROPOSTA_RASCUNHO:
        return PROPOSTA_ENVIADA
    return status


def label_status(tipo: str, status: str) -> str:
    labels = PROPOSTA_LABELS if tipo == "proposal" else CONTRATO_LABELS
    return labels.get(status, status)
