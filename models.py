import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    # colunas DateTime guardam UTC sem fuso
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RecordMixin:
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> dict:
        out = {}
        for col in self.__table__.columns:
            v = getattr(self, col.name)
            if isinstance(v, datetime):
                v = v.replace(tzinfo=timezone.utc).isoformat()
            out[col.name] = v
        return out


class Freelancer(RecordMixin, db.Model):
    __tablename__ = "freelancers"

    name = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), nullable=True)
    person_type = db.Column(db.String(2), nullable=True)
    cpf = db.Column(db.String(20), nullable=True)
    cnpj = db.Column(db.String(20), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(2), nullable=True)
    whatsapp = db.Column(db.String(40), nullable=True)
    professional_email = db.Column(db.String(255), nullable=True)
    default_signature = db.Column(db.Text, nullable=True)

    plan_type = db.Column(db.String(10), nullable=False, default="free")
    subscription_status = db.Column(db.String(10), nullable=False, default="trial")
    trial_started_at = db.Column(db.DateTime, nullable=True)
    trial_ends_at = db.Column(db.DateTime, nullable=True)
    blocked_at = db.Column(db.DateTime, nullable=True)
    stripe_customer_id = db.Column(db.String(64), nullable=True)

    accepted_terms_at = db.Column(db.DateTime, nullable=True)
    marketing_opt_in = db.Column(db.Boolean, nullable=False, default=False)


class Proposal(RecordMixin, db.Model):
    __tablename__ = "proposals"

    client_id = db.Column(db.String(36), nullable=True)
    client_name = db.Column(db.String(255), nullable=False)
    client_email = db.Column(db.String(255), nullable=True)
    client_phone = db.Column(db.String(40), nullable=True)
    service = db.Column(db.String(255), nullable=False)
    scope = db.Column(db.Text, nullable=True)
    value = db.Column(db.Float, nullable=False, default=0)
    deadline = db.Column(db.String(120), nullable=True)
    payment_method = db.Column(db.String(120), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="rascunho")
    followup_date = db.Column(db.String(10), nullable=True)
    followup_channel = db.Column(db.String(40), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    validity_days = db.Column(db.Integer, nullable=True)
    expires_at = db.Column(db.String(10), nullable=True)


class Contract(RecordMixin, db.Model):
    __tablename__ = "contracts"

    proposal_id = db.Column(db.String(36), nullable=True)
    client_id = db.Column(db.String(36), nullable=True)
    person_type = db.Column(db.String(2), nullable=False, default="pf")
    client_name = db.Column(db.String(255), nullable=False)
    client_document = db.Column(db.String(20), nullable=True)
    client_rg = db.Column(db.String(20), nullable=True)
    client_company_name = db.Column(db.String(255), nullable=True)
    client_address = db.Column(db.String(255), nullable=True)
    client_city = db.Column(db.String(120), nullable=True)
    client_state = db.Column(db.String(2), nullable=True)
    client_phone = db.Column(db.String(40), nullable=True)
    client_email = db.Column(db.String(255), nullable=True)

    service_name = db.Column(db.String(255), nullable=False)
    service_scope = db.Column(db.Text, nullable=True)
    deliverables = db.Column(db.Text, nullable=True)
    value = db.Column(db.Float, nullable=False, default=0)

    deadline_mode = db.Column(db.String(5), nullable=False, default="days")
    deadline_days = db.Column(db.Integer, nullable=True)
    deadline_type = db.Column(db.String(20), nullable=True)
    deadline_date = db.Column(db.String(10), nullable=True)

    payment_type = db.Column(db.String(20), nullable=False, default="a-vista")
    payment_installments = db.Column(db.JSON, nullable=True)
    payment_notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default="rascunho")
    contract_text = db.Column(db.Text, nullable=True)


class Client(RecordMixin, db.Model):
    __tablename__ = "clients"

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(40), nullable=True)
    person_type = db.Column(db.String(2), nullable=False, default="pf")
    document = db.Column(db.String(20), nullable=True)
    rg = db.Column(db.String(20), nullable=True)
    company_name = db.Column(db.String(255), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(2), nullable=True)
    notes = db.Column(db.Text, nullable=True)


class FinancialRecord(RecordMixin, db.Model):
    __tablename__ = "financial_records"

    contract_id = db.Column(db.String(36), nullable=True)
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Float, nullable=False, default=0)
    due_date = db.Column(db.String(10), nullable=True)
    received_date = db.Column(db.String(10), nullable=True)
    is_received = db.Column(db.Boolean, nullable=False, default=False)
    payment_method = db.Column(db.String(20), nullable=True)
    notes = db.Column(db.Text, nullable=True)


class UserSettings(RecordMixin, db.Model):
    __tablename__ = "user_settings"

    proposal_validity = db.Column(db.Integer, nullable=False, default=30)
    validity_unit = db.Column(db.String(10), nullable=False, default="dias")
    date_format = db.Column(db.String(10), nullable=False, default="dd/mm/aaaa")
    autosave_drafts = db.Column(db.Boolean, nullable=False, default=True)
    notif_email = db.Column(db.Boolean, nullable=False, default=True)
    notif_followup = db.Column(db.Boolean, nullable=False, default=True)
    notif_expiring_proposals = db.Column(db.Boolean, nullable=False, default=True)
    notif_pending_payments = db.Column(db.Boolean, nullable=False, default=True)


class PublicProfile(RecordMixin, db.Model):
    __tablename__ = "public_profiles"

    slug = db.Column(db.String(120), nullable=False, unique=True)
    display_name = db.Column(db.String(255), nullable=False, default="")
    specialty = db.Column(db.String(255), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    photo_url = db.Column(db.String(500), nullable=True)
    whatsapp_link = db.Column(db.String(255), nullable=True)
    video_embed_url = db.Column(db.String(255), nullable=True)
    portfolio_images = db.Column(db.JSON, nullable=True)
    published = db.Column(db.Boolean, nullable=False, default=False)


class Subscription(RecordMixin, db.Model):
    __tablename__ = "subscriptions"

    stripe_customer_id = db.Column(db.String(64), nullable=True)
    stripe_subscription_id = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(20), nullable=False)
    plan_type = db.Column(db.String(10), nullable=False, default="free")
    current_period_end = db.Column(db.DateTime, nullable=True)
    cancel_at_period_end = db.Column(db.Boolean, nullable=False, default=False)


# tipo de entidade -> model
MODELS = {
    "freelancers": Freelancer,
    "proposals": Proposal,
    "contracts": Contract,
    "clients": Client,
    "financial_records": FinancialRecord,
    "settings": UserSettings,
    "public_profiles": PublicProfile,
    "subscriptions": Subscription,
}
