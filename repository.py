import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from errors import NotFoundError, StoreError
from models import MODELS, db
from utils import agora_utc, parse_datetime

logger = logging.getLogger(__name__)


def _check_kind(kind: str) -> None:
    if kind not in MODELS:
        raise ValueError(f"Tipo de registro desconhecido: {kind}")


def _iso(valor):
    if isinstance(valor, datetime):
        return parse_datetime(valor).isoformat()
    return valor


class SqlRecordStore:
    """
    Store remoto: Flask-SQLAlchemy (SQLite local ou Postgres em produção).
    Precisa de app context. Qualquer falha do banco vira StoreError.
    """

    name = "sql"

    def _coerce(self, model, data: dict) -> dict:
        out = {}
        for col in model.__table__.columns:
            if col.name not in data:
                continue
            v = data[col.name]
            if isinstance(col.type, db.DateTime) and v is not None:
                # UTC sem fuso no banco
                v = parse_datetime(v).astimezone(timezone.utc).replace(tzinfo=None)
            out[col.name] = v
        return out

    def _fail(self, op: str, kind: str, e: Exception):
        db.session.rollback()
        logger.error("Falha no banco (%s %s): %s", op, kind, e)
        return StoreError()

    def health(self) -> bool:
        try:
            db.session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Banco indisponível: %s", e)
            db.session.rollback()
            return False

    def create(self, kind: str, data: dict) -> dict:
        _check_kind(kind)
        model = MODELS[kind]
        try:
            obj = model(**self._coerce(model, data))
            db.session.add(obj)
            db.session.commit()
            return obj.to_dict()
        except SQLAlchemyError as e:
            raise self._fail("create", kind, e)

    def get(self, kind: str, record_id: str):
        _check_kind(kind)
        try:
            obj = db.session.get(MODELS[kind], record_id)
        except SQLAlchemyError as e:
            raise self._fail("get", kind, e)
        return obj.to_dict() if obj else None

    def update(self, kind: str, record_id: str, changes: dict) -> dict:
        _check_kind(kind)
        model = MODELS[kind]
        try:
            obj = db.session.get(model, record_id)
            if obj is None:
                raise NotFoundError()
            for k, v in self._coerce(model, changes).items():
                if k in ("id", "created_at"):
                    continue
                setattr(obj, k, v)
            db.session.commit()
            return obj.to_dict()
        except SQLAlchemyError as e:
            raise self._fail("update", kind, e)

    def delete(self, kind: str, record_id: str) -> bool:
        _check_kind(kind)
        try:
            obj = db.session.get(MODELS[kind], record_id)
            if obj is None:
                return False
            db.session.delete(obj)
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            raise self._fail("delete", kind, e)

    def list(self, kind: str, **filters) -> list:
        _check_kind(kind)
        model = MODELS[kind]
        try:
            items = (
                model.query.filter_by(**filters)
                .order_by(model.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("list", kind, e)
        return [i.to_dict() for i in items]

    def delete_where(self, kind: str, **filters) -> int:
        _check_kind(kind)
        model = MODELS[kind]
        try:
            removed = model.query.filter_by(**filters).delete()
            db.session.commit()
            return removed
        except SQLAlchemyError as e:
            raise self._fail("delete_where", kind, e)


class LocalRecordStore:
    """
    Store local em arquivo JSON ({tipo: [registros]}).
    Usado quando o banco não responde na inicialização e como cache de leitura.
    Não sincroniza de volta com o banco.
    """

    name = "local"

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            logger.error("Store local ilegível (%s): %s", self.path, e)
            raise StoreError()

    def _save(self, dados: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            tmp.write_text(json.dumps(dados, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            logger.error("Falha ao gravar store local (%s): %s", self.path, e)
            raise StoreError()

    def health(self) -> bool:
        return True

    def create(self, kind: str, data: dict) -> dict:
        _check_kind(kind)
        agora = agora_utc().isoformat()
        registro = {k: _iso(v) for k, v in data.items()}
        registro.setdefault("id", str(uuid.uuid4()))
        registro.setdefault("created_at", agora)
        registro.setdefault("updated_at", agora)
        with self._lock:
            dados = self._load()
            itens = dados.setdefault(kind, [])
            # regravação do mesmo id (espelho do banco) substitui
            itens[:] = [i for i in itens if i.get("id") != registro["id"]]
            itens.append(registro)
            self._save(dados)
        return dict(registro)

    def get(self, kind: str, record_id: str):
        _check_kind(kind)
        with self._lock:
            for item in self._load().get(kind, []):
                if item.get("id") == record_id:
                    return dict(item)
        return None

    def update(self, kind: str, record_id: str, changes: dict) -> dict:
        _check_kind(kind)
        with self._lock:
            dados = self._load()
            for item in dados.get(kind, []):
                if item.get("id") == record_id:
                    for k, v in changes.items():
                        if k in ("id", "created_at"):
                            continue
                        item[k] = _iso(v)
                    item["updated_at"] = agora_utc().isoformat()
                    self._save(dados)
                    return dict(item)
        raise NotFoundError()

    def delete(self, kind: str, record_id: str) -> bool:
        _check_kind(kind)
        with self._lock:
            dados = self._load()
            itens = dados.get(kind, [])
            restantes = [i for i in itens if i.get("id") != record_id]
            if len(restantes) == len(itens):
                return False
            dados[kind] = restantes
            self._save(dados)
        return True

    def list(self, kind: str, **filters) -> list:
        _check_kind(kind)
        with self._lock:
            itens = self._load().get(kind, [])
        achados = [
            dict(i) for i in itens
            if all(i.get(k) == v for k, v in filters.items())
        ]
        achados.sort(key=lambda i: parse_datetime(i.get("created_at")) or agora_utc(), reverse=True)
        return achados

    def delete_where(self, kind: str, **filters) -> int:
        _check_kind(kind)
        with self._lock:
            dados = self._load()
            itens = dados.get(kind, [])
            restantes = [i for i in itens if not all(i.get(k) == v for k, v in filters.items())]
            removed = len(itens) - len(restantes)
            if removed:
                dados[kind] = restantes
                self._save(dados)
        return removed


class FallbackRecordStore:
    """
    Banco primeiro. Leituras que falham caem no cache local; gravações não.
    Gravações bem sucedidas são copiadas para o cache.
    """

    name = "sql+local"

    def __init__(self, primary, cache):
        self.primary = primary
        self.cache = cache

    def _espelhar(self, fn, *args, **kwargs) -> None:
        try:
            fn(*args, **kwargs)
        except StoreError as e:
            logger.warning("Cache local não atualizado: %s", e)

    def health(self) -> bool:
        return self.primary.health()

    def create(self, kind, data):
        registro = self.primary.create(kind, data)
        self._espelhar(self.cache.create, kind, registro)
        return registro

    def get(self, kind, record_id):
        try:
            return self.primary.get(kind, record_id)
        except StoreError:
            logger.warning("Lendo %s/%s do cache local", kind, record_id)
            return self.cache.get(kind, record_id)

    def update(self, kind, record_id, changes):
        registro = self.primary.update(kind, record_id, changes)
        self._espelhar(self.cache.create, kind, registro)
        return registro

    def delete(self, kind, record_id):
        removed = self.primary.delete(kind, record_id)
        self._espelhar(self.cache.delete, kind, record_id)
        return removed

    def list(self, kind, **filters):
        try:
            return self.primary.list(kind, **filters)
        except StoreError:
            logger.warning("Listando %s do cache local", kind)
            return self.cache.list(kind, **filters)

    def delete_where(self, kind, **filters):
        removed = self.primary.delete_where(kind, **filters)
        self._espelhar(self.cache.delete_where, kind, **filters)
        return removed


def escolher_store(app):
    """
    Health check na inicialização: banco respondendo -> SQL com cache local,
    senão só o store local.
    """
    local = LocalRecordStore(app.config["LOCAL_STORE_PATH"])
    with app.app_context():
        sql = SqlRecordStore()
        if sql.health():
            logger.info("Usando banco de dados (%s)", app.config["SQLALCHEMY_DATABASE_URI"].split(":", 1)[0])
            return FallbackRecordStore(sql, local)
    logger.warning("Banco indisponível, usando store local em %s", local.path)
    return local
