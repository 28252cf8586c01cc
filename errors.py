class AppError(Exception):
    """
    Erro esperado de uma ação do usuário.
    Carrega a mensagem exibida na notificação e o status HTTP da resposta.
    """
    status_code = 500
    mensagem_padrao = "Erro inesperado. Tente novamente."

    def __init__(self, mensagem: str = None):
        self.mensagem = mensagem or self.mensagem_padrao
        super().__init__(self.mensagem)

    def to_dict(self) -> dict:
        return {"erro": self.mensagem}


class ValidationError(AppError):
    status_code = 400
    mensagem_padrao = "Preencha os campos obrigatórios."

    def __init__(self, mensagem: str = None, campo: str = None):
        super().__init__(mensagem)
        self.campo = campo

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.campo:
            d["campo"] = self.campo
        return d


class NotFoundError(AppError):
    status_code = 404
    mensagem_padrao = "Registro não encontrado."


class PermissionDenied(AppError):
    status_code = 403
    mensagem_padrao = "Seu período de teste terminou. Assine o plano Pro para continuar criando documentos."


class StoreError(AppError):
    status_code = 503
    mensagem_padrao = "Erro ao acessar os dados. Tente novamente."


class AuthError(AppError):
    status_code = 401
    mensagem_padrao = "Usuário não autenticado. Faça login novamente."


class ExternalServiceError(AppError):
    status_code = 502


class PdfExportError(ExternalServiceError):
    mensagem_padrao = "Erro ao gerar PDF."


class CheckoutError(ExternalServiceError):
    mensagem_padrao = "Erro ao iniciar pagamento."
