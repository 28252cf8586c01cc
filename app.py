import logging
import os

from flask import Flask, jsonify, request, send_file, session

import account_service
import client_service
import contract_service
import dashboard_service
import document_service
import finance_service
import profile_service
import proposal_service
import settings_service
import subscription_service
from auth_service import IdentityProvider, validar_cadastro, validar_senha
from cleanup import cleanup_expired_accounts, cleanup_tmp_pdfs
from config import Config
from errors import AppError, AuthError, PermissionDenied, ValidationError
from models import db
from payment_service import PaymentGateway, StripeBilling
from pdf_service import exportar_pdf, nome_pdf
from preview_service import perfil_publico_html, renderizar_preview
from repository import escolher_store
from utils import parse_bool

logger = logging.getLogger(__name__)


def _dados() -> dict:
    # JSON ou formulário
    return request.get_json(silent=True) or request.form.to_dict()


def create_app(config=None, store=None, identity=None, gateway=None, billing=None):
    app = Flask(__name__)
    app.config.from_object(config or Config)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    os.makedirs(app.config["STORAGE_DIR"], exist_ok=True)

    db.init_app(app)
    with app.app_context():
        db.create_all()

    store = store or escolher_store(app)
    identity = identity or IdentityProvider(
        app.config["SUPABASE_URL"], app.config["SUPABASE_KEY"], app.config["APP_URL"]
    )
    gateway = gateway or PaymentGateway(app.config["PAYMENT_FUNCTIONS_URL"])
    billing = billing or StripeBilling(app.config["STRIPE_SECRET_KEY"])
    app.extensions["record_store"] = store

    pdf_tmp_dir = os.path.join(app.config["STORAGE_DIR"], "_pdf_tmp")

    @app.errorhandler(AppError)
    def _app_error(e: AppError):
        return jsonify(e.to_dict()), e.status_code

    # --------- Proteção (login) ----------
    PUBLIC_PATHS = {"/login", "/signup", "/logout", "/recuperar-senha", "/redefinir-senha", "/health"}

    @app.before_request
    def _guard_and_cleanup():
        path = request.path

        # libera static, perfil público e rotas públicas
        if path.startswith("/static/") or path.startswith("/p/") or path in PUBLIC_PATHS:
            return None

        if not session.get("user_id"):
            raise AuthError()

        # limpeza (somente quando logado, pra não gastar)
        try:
            cleanup_expired_accounts(store, identity, app.config["BLOCKED_RETENTION_DAYS"], billing=billing)
        except AppError as e:
            logger.warning("Limpeza de contas não concluída: %s", e)

        cleanup_tmp_pdfs(pdf_tmp_dir, max_age_hours=app.config["TMP_PDF_MAX_AGE_HOURS"])
        return None

    def _uid() -> str:
        return session["user_id"]

    def _situacao() -> dict:
        return subscription_service.situacao_do_usuario(store, _uid(), trial_dias=app.config["TRIAL_DAYS"])

    def _exigir_plano() -> None:
        if not _situacao()["can_create_documents"]:
            raise PermissionDenied()

    def _formato_data() -> str:
        return settings_service.obter_configuracoes(store, _uid())["date_format"]

    def _politica() -> dict:
        return app.config["POLITICA_CONTRATO"]

    def _enviar_pdf(tipo: str, documento: dict):
        path = exportar_pdf(
            tipo, documento, app.config["STORAGE_DIR"],
            libreoffice_path=app.config["LIBREOFFICE_PATH"],
            date_format=_formato_data(),
        )
        return send_file(path, as_attachment=True, download_name=nome_pdf(tipo, documento))

    def _iniciar_sessao(conta: dict) -> None:
        session.clear()
        session["user_id"] = conta["user_id"]
        session["access_token"] = conta.get("access_token")
        session["refresh_token"] = conta.get("refresh_token")

    # --------- Autenticação ----------
    @app.post("/login")
    def login():
        d = _dados()
        email = (d.get("email") or "").strip()
        senha = d.get("password") or ""
        if not email or not senha:
            raise ValidationError()

        conta = identity.sign_in(email, senha)
        _iniciar_sessao(conta)
        account_service.garantir_freelancer(
            store, conta["user_id"], email=email, trial_dias=app.config["TRIAL_DAYS"]
        )
        return {"ok": True, "user_id": conta["user_id"]}

    @app.post("/signup")
    def signup():
        d = _dados()
        validar_cadastro(d)

        email = d["email"].strip()
        nome = d["name"].strip()
        conta = identity.sign_up(email, d["password"], nome, parse_bool(d.get("marketing_opt_in")))
        account_service.garantir_freelancer(
            store, conta["user_id"], email=email, name=nome,
            marketing_opt_in=parse_bool(d.get("marketing_opt_in")), trial_dias=app.config["TRIAL_DAYS"],
        )

        # sem sessão: provedor exige confirmação do e-mail
        if conta.get("access_token"):
            _iniciar_sessao(conta)
        return {"ok": True, "confirm_email": not conta.get("access_token")}, 201

    @app.get("/logout")
    def logout():
        if session.get("user_id"):
            identity.sign_out()
        session.clear()
        return {"ok": True}

    @app.post("/recuperar-senha")
    def recuperar_senha():
        email = (_dados().get("email") or "").strip()
        if not email:
            raise ValidationError(campo="email")
        identity.request_password_reset(email)
        return {"ok": True, "mensagem": "Enviamos um link de recuperação para o seu e-mail."}

    @app.post("/redefinir-senha")
    def redefinir_senha():
        d = _dados()
        senha = d.get("password") or ""
        validar_senha(senha)
        if senha != d.get("confirm_password"):
            raise ValidationError("As senhas não coincidem.", campo="confirm_password")

        access = d.get("access_token") or session.get("access_token")
        refresh = d.get("refresh_token") or session.get("refresh_token")
        if not access or not refresh:
            raise AuthError("Link de recuperação inválido ou expirado.")

        identity.update_password(access, refresh, senha)
        return {"ok": True}

    @app.get("/health")
    def health():
        return {"ok": True, "store": store.name}

    # ---------------- PROPOSTAS ----------------
    @app.get("/api/propostas")
    def listar_propostas():
        return jsonify(proposal_service.listar_propostas(store, _uid(), request.args.get("status")))

    @app.post("/api/propostas")
    def criar_proposta():
        _exigir_plano()
        return proposal_service.salvar_rascunho(store, _uid(), _dados()), 201

    @app.get("/api/propostas/<proposal_id>")
    def obter_proposta(proposal_id: str):
        return proposal_service.obter_proposta(store, _uid(), proposal_id)

    @app.put("/api/propostas/<proposal_id>")
    def atualizar_proposta(proposal_id: str):
        _exigir_plano()
        return proposal_service.salvar_rascunho(store, _uid(), _dados(), proposal_id=proposal_id)

    @app.delete("/api/propostas/<proposal_id>")
    def excluir_proposta(proposal_id: str):
        proposal_service.excluir_proposta(store, _uid(), proposal_id)
        return {"ok": True}

    @app.post("/api/propostas/gerar")
    def gerar_proposta():
        _exigir_plano()
        return proposal_service.gerar_documento(store, _uid(), _dados()), 201

    @app.post("/api/propostas/<proposal_id>/gerar")
    def gerar_proposta_existente(proposal_id: str):
        _exigir_plano()
        return proposal_service.gerar_documento(store, _uid(), _dados() or None, proposal_id=proposal_id)

    @app.get("/api/propostas/<proposal_id>/preview")
    def preview_proposta(proposal_id: str):
        p = proposal_service.obter_proposta(store, _uid(), proposal_id)
        return renderizar_preview("proposal", p, _formato_data())

    @app.get("/api/propostas/<proposal_id>/pdf")
    def pdf_proposta(proposal_id: str):
        return _enviar_pdf("proposal", proposal_service.obter_proposta(store, _uid(), proposal_id))

    # ---------------- CONTRATOS ----------------
    @app.get("/api/contratos")
    def listar_contratos():
        return jsonify(contract_service.listar_contratos(store, _uid(), request.args.get("status")))

    @app.post("/api/contratos")
    def criar_contrato():
        _exigir_plano()
        return contract_service.salvar_contrato(store, _uid(), _dados(), politica=_politica()), 201

    @app.get("/api/contratos/<contract_id>")
    def obter_contrato(contract_id: str):
        return contract_service.obter_contrato(store, _uid(), contract_id)

    @app.put("/api/contratos/<contract_id>")
    def atualizar_contrato(contract_id: str):
        _exigir_plano()
        return contract_service.salvar_contrato(
            store, _uid(), _dados(), contract_id=contract_id, politica=_politica()
        )

    @app.delete("/api/contratos/<contract_id>")
    def excluir_contrato(contract_id: str):
        contract_service.excluir_contrato(store, _uid(), contract_id)
        return {"ok": True}

    @app.get("/api/contratos/prefill/<proposal_id>")
    def prefill_contrato(proposal_id: str):
        p = proposal_service.obter_proposta(store, _uid(), proposal_id)
        return contract_service.dados_de_proposta(p)

    @app.post("/api/contratos/texto")
    def texto_contrato():
        # pré-visualização do texto, sem salvar
        texto = contract_service.gerar_texto_contrato(_dados(), politica=_politica())
        return {"contract_text": texto}

    @app.get("/api/contratos/<contract_id>/preview")
    def preview_contrato(contract_id: str):
        c = contract_service.obter_contrato(store, _uid(), contract_id)
        return renderizar_preview("contract", c, _formato_data())

    @app.get("/api/contratos/<contract_id>/pdf")
    def pdf_contrato(contract_id: str):
        return _enviar_pdf("contract", contract_service.obter_contrato(store, _uid(), contract_id))

    # ---------------- LISTAGENS ----------------
    @app.get("/api/documentos")
    def documentos():
        return jsonify(document_service.listar_documentos(
            store, _uid(), request.args.get("type"), request.args.get("status")
        ))

    @app.get("/api/clientes")
    def clientes():
        return jsonify(client_service.listar_clientes(store, _uid()))

    @app.get("/api/dashboard")
    def dashboard():
        return dashboard_service.montar_dashboard(store, _uid())

    # ---------------- FINANCEIRO ----------------
    @app.get("/api/financeiro")
    def listar_financeiro():
        return jsonify(finance_service.listar_registros(store, _uid(), request.args.get("contract_id")))

    @app.post("/api/financeiro")
    def criar_financeiro():
        return finance_service.criar_registro(store, _uid(), _dados()), 201

    @app.put("/api/financeiro/<record_id>")
    def atualizar_financeiro(record_id: str):
        return finance_service.atualizar_registro(store, _uid(), record_id, _dados())

    @app.delete("/api/financeiro/<record_id>")
    def excluir_financeiro(record_id: str):
        finance_service.excluir_registro(store, _uid(), record_id)
        return {"ok": True}

    @app.post("/api/financeiro/<record_id>/recebido")
    def marcar_recebido(record_id: str):
        d = _dados()
        return finance_service.marcar_recebido(
            store, _uid(), record_id,
            recebido=parse_bool(d.get("recebido", True)),
            received_date=d.get("received_date"),
        )

    @app.get("/api/financeiro/resumo")
    def resumo_financeiro():
        return {
            "resumo": finance_service.resumo_do_usuario(store, _uid()),
            "contratos": finance_service.contratos_com_recebimentos(store, _uid()),
        }

    # ---------------- CONFIGURAÇÕES / PERFIS ----------------
    @app.get("/api/configuracoes")
    def obter_configuracoes():
        return settings_service.obter_configuracoes(store, _uid())

    @app.put("/api/configuracoes")
    def atualizar_configuracoes():
        return settings_service.atualizar_configuracoes(store, _uid(), _dados())

    @app.get("/api/perfil")
    def obter_perfil():
        return account_service.garantir_freelancer(store, _uid(), trial_dias=app.config["TRIAL_DAYS"])

    @app.put("/api/perfil")
    def atualizar_perfil():
        return account_service.atualizar_freelancer(store, _uid(), _dados())

    @app.get("/api/perfil-publico")
    def obter_perfil_publico():
        return profile_service.obter_perfil_publico(store, _uid()) or {}

    @app.put("/api/perfil-publico")
    def salvar_perfil_publico():
        return profile_service.salvar_perfil_publico(store, _uid(), _dados())

    @app.get("/p/<slug>")
    def perfil_publico(slug: str):
        return perfil_publico_html(profile_service.perfil_por_slug(store, slug))

    # ---------------- ASSINATURA / CONTA ----------------
    @app.get("/api/assinatura")
    def assinatura():
        return _situacao()

    @app.post("/api/assinatura/checkout")
    def checkout():
        url = gateway.criar_checkout(session.get("access_token"), app.config["APP_URL"])
        return {"url": url}

    @app.post("/api/assinatura/portal")
    def portal():
        return_url = _dados().get("return_url") or app.config["APP_URL"]
        return {"url": gateway.abrir_portal(session.get("access_token"), return_url)}

    @app.delete("/api/conta")
    def excluir_conta():
        account_service.excluir_conta(store, identity, _uid(), billing=billing)
        session.clear()
        return {"ok": True}

    return app


# `flask --app app run` e `gunicorn "app:create_app()"` chamam a fábrica
if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
