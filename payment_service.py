import logging

import requests
import stripe

from errors import CheckoutError

logger = logging.getLogger(__name__)

TIMEOUT = 30


class PaymentGateway:
    """
    Cliente das funções de pagamento (checkout e portal do assinante).
    As duas chamadas recebem o token do usuário e devolvem a URL de redirecionamento.
    """

    def __init__(self, base_url: str, session=None):
        self.base_url = (base_url or "").rstrip("/")
        self.session = session or requests.Session()

    def _post(self, funcao: str, token: str, return_url: str, padrao: str) -> str:
        if not self.base_url:
            raise CheckoutError("Pagamento não configurado.")

        try:
            r = self.session.post(
                f"{self.base_url}/{funcao}",
                json={"return_url": return_url},
                headers={"Authorization": f"Bearer {token}"},
                timeout=TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error("Falha ao chamar %s: %s", funcao, e)
            raise CheckoutError(padrao)

        try:
            data = r.json()
        except ValueError:
            data = {}

        if not r.ok:
            msg = data.get("error") or padrao
            if data.get("details"):
                msg = f"{msg}: {data['details']}"
            logger.warning("%s respondeu %s: %s", funcao, r.status_code, msg)
            raise CheckoutError(msg)

        if not data.get("url"):
            raise CheckoutError("URL de redirecionamento não retornada.")
        return data["url"]

    def criar_checkout(self, token: str, return_url: str) -> str:
        return self._post("create-checkout", token, return_url, "Erro ao criar sessão de pagamento.")

    def abrir_portal(self, token: str, return_url: str) -> str:
        return self._post("customer-portal", token, return_url, "Erro ao abrir portal de gerenciamento.")


class StripeBilling:
    """
    Encerra a cobrança no Stripe antes de a conta ser apagada.
    Falhas são registradas e não interrompem a exclusão (a assinatura pode já estar cancelada).
    """

    def __init__(self, secret_key: str):
        self.secret_key = secret_key

    def _configurado(self) -> bool:
        if not self.secret_key:
            logger.warning("STRIPE_SECRET_KEY ausente, cobrança não encerrada")
            return False
        stripe.api_key = self.secret_key
        return True

    def cancelar_assinatura(self, subscription_id: str) -> bool:
        if not subscription_id or not self._configurado():
            return False
        try:
            stripe.Subscription.cancel(subscription_id)
        except stripe.StripeError as e:
            logger.error("Erro ao cancelar assinatura %s no Stripe: %s", subscription_id, e)
            return False
        logger.info("Assinatura %s cancelada no Stripe", subscription_id)
        return True

    def excluir_cliente(self, customer_id: str) -> bool:
        if not customer_id or not self._configurado():
            return False
        try:
            stripe.Customer.delete(customer_id)
        except stripe.StripeError as e:
            logger.error("Erro ao excluir cliente %s no Stripe: %s", customer_id, e)
            return False
        logger.info("Cliente %s excluído no Stripe", customer_id)
        return True
