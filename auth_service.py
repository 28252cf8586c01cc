import logging

from supabase import AuthError as SupabaseAuthError
from supabase import create_client

from errors import AuthError, ExternalServiceError, ValidationError
from utils import parse_bool

logger = logging.getLogger(__name__)

# trecho da mensagem do provedor -> mensagem exibida
MENSAGENS_AUTH = [
    ("Invalid login credentials", "E-mail ou senha incorretos."),
    ("Email not confirmed", "Confirme seu e-mail antes de entrar. Verifique sua caixa de entrada."),
    ("User already registered", "Este e-mail já está cadastrado."),
    ("Password should be", "A senha deve ter pelo menos 6 caracteres."),
]

SENHA_MINIMA = 6


def traduzir_erro(mensagem: str) -> str:
    for trecho, traducao in MENSAGENS_AUTH:
        if trecho.lower() in (mensagem or "").lower():
            return traducao
    return "Erro de autenticação. Tente novamente."


def validar_cadastro(dados: dict) -> None:
    for campo in ("name", "email", "password"):
        if not (dados.get(campo) or "").strip():
            raise ValidationError(campo=campo)
    if not parse_bool(dados.get("accept_terms")):
        raise ValidationError("Você precisa aceitar os termos de uso.", campo="accept_terms")
    if dados["password"] != dados.get("confirm_password"):
        raise ValidationError("As senhas não coincidem.", campo="confirm_password")
    validar_senha(dados["password"])


def validar_senha(senha: str) -> None:
    if len(senha or "") < SENHA_MINIMA:
        raise ValidationError(f"A senha deve ter pelo menos {SENHA_MINIMA} caracteres.", campo="password")


class IdentityProvider:
    """
    Cadastro, login e senha via Supabase Auth.
    Retorna dicts simples: {"user_id", "email", "access_token", "refresh_token"}.
    """

    def __init__(self, url: str, key: str, app_url: str = ""):
        self.url = url
        self.key = key
        self.app_url = app_url
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.url or not self.key:
                raise ExternalServiceError("Autenticação não configurada.")
            self._client = create_client(self.url, self.key)
        return self._client

    def _falha(self, op: str, e: Exception):
        logger.warning("Falha no provedor de identidade (%s): %s", op, e)
        return AuthError(traduzir_erro(str(e)))

    def sign_up(self, email: str, password: str, name: str, marketing_opt_in: bool = False) -> dict:
        try:
            res = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"name": name, "marketing_opt_in": bool(marketing_opt_in)}},
            })
        except SupabaseAuthError as e:
            raise self._falha("sign_up", e)

        if res.user is None:
            raise AuthError("Não foi possível criar a conta.")
        return {
            "user_id": res.user.id,
            "email": res.user.email,
            "access_token": res.session.access_token if res.session else None,
            "refresh_token": res.session.refresh_token if res.session else None,
        }

    def sign_in(self, email: str, password: str) -> dict:
        try:
            res = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except SupabaseAuthError as e:
            raise self._falha("sign_in", e)

        return {
            "user_id": res.user.id,
            "email": res.user.email,
            "access_token": res.session.access_token,
            "refresh_token": res.session.refresh_token,
        }

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except SupabaseAuthError as e:
            # sessão local é limpa mesmo assim
            logger.warning("Falha ao encerrar sessão no provedor: %s", e)

    def request_password_reset(self, email: str) -> None:
        try:
            self.client.auth.reset_password_for_email(
                email, {"redirect_to": f"{self.app_url}/redefinir-senha"}
            )
        except SupabaseAuthError as e:
            raise self._falha("reset_password", e)

    def update_password(self, access_token: str, refresh_token: str, new_password: str) -> None:
        validar_senha(new_password)
        try:
            self.client.auth.set_session(access_token, refresh_token)
            self.client.auth.update_user({"password": new_password})
        except SupabaseAuthError as e:
            raise self._falha("update_password", e)

    def delete_user(self, user_id: str) -> None:
        try:
            self.client.auth.admin.delete_user(user_id)
        except SupabaseAuthError as e:
            logger.error("Falha ao excluir usuário %s no provedor: %s", user_id, e)
            raise ExternalServiceError("Erro ao excluir conta. Tente novamente.")
