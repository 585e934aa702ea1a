from typing import List
from sqlalchemy.orm import Session
from crud.audit_log import record_audit
from models.clients import Client
from schemas.clients import ClientCreate, ClientUpdate
from utils import sqlalchemy_to_dict
from utils.errors import NotFoundError

# Credentials never go into the audit trail
_REDACTED = ("api_password",)


def _snapshot(client: Client) -> dict:
    values = sqlalchemy_to_dict(client)
    for key in _REDACTED:
        if values.get(key):
            values[key] = "***"
    return values


def get_client(db: Session, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if client is None:
        raise NotFoundError("Client not found")
    return client


def list_clients(db: Session, skip: int = 0, limit: int = 100) -> List[Client]:
    return db.query(Client).filter(Client.status != "archived").order_by(Client.company_name).offset(skip).limit(limit).all()


def create_client(db: Session, data: ClientCreate, performed_by: str = None) -> Client:
    client = Client(**data.model_dump(), created_by=performed_by)
    db.add(client)
    db.flush()
    record_audit(db, "CREATE", "Client", client.id, performed_by, new_values=_snapshot(client))
    db.commit()
    db.refresh(client)
    return client


def update_client(db: Session, client_id: int, data: ClientUpdate, performed_by: str = None) -> Client:
    client = get_client(db, client_id)
    old_values = _snapshot(client)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(client, key, value)
    client.updated_by = performed_by
    db.flush()
    record_audit(db, "UPDATE", "Client", client.id, performed_by, old_values, _snapshot(client))
    db.commit()
    db.refresh(client)
    return client


def delete_client(db: Session, client_id: int, performed_by: str = None) -> Client:
    """Clients keep their sales and job cards, so they are archived rather than deleted."""
    client = get_client(db, client_id)
    old_values = _snapshot(client)
    client.status = "archived"
    client.updated_by = performed_by
    db.flush()
    record_audit(db, "DELETE", "Client", client.id, performed_by, old_values, _snapshot(client))
    db.commit()
    db.refresh(client)
    return client
