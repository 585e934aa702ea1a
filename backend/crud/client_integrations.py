from typing import List
from sqlalchemy.orm import Session
from crud.audit_log import record_audit
from crud.clients import get_client
from models.clients import ClientIntegration
from schemas.clients import ClientIntegrationCreate, ClientIntegrationUpdate
from utils import sqlalchemy_to_dict
from utils.errors import NotFoundError


def get_integration(db: Session, integration_id: int) -> ClientIntegration:
    integration = db.query(ClientIntegration).filter(ClientIntegration.id == integration_id).first()
    if integration is None:
        raise NotFoundError("Client integration not found")
    return integration


def list_integrations(db: Session, client_id: int) -> List[ClientIntegration]:
    return db.query(ClientIntegration).filter(
        ClientIntegration.client_id == client_id
    ).order_by(ClientIntegration.label, ClientIntegration.id).all()


def create_integration(db: Session, data: ClientIntegrationCreate, performed_by: str = None) -> ClientIntegration:
    get_client(db, data.client_id)
    integration = ClientIntegration(**data.model_dump(), created_by=performed_by)
    db.add(integration)
    db.flush()
    record_audit(
        db, "CREATE", "ClientIntegration", integration.id, performed_by,
        new_values=sqlalchemy_to_dict(integration),
        meta={"client_id": integration.client_id},
    )
    db.commit()
    db.refresh(integration)
    return integration


def update_integration(db: Session, integration_id: int, data: ClientIntegrationUpdate, performed_by: str = None) -> ClientIntegration:
    integration = get_integration(db, integration_id)
    old_values = sqlalchemy_to_dict(integration)
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(integration, key, value)
    integration.updated_by = performed_by
    db.flush()
    record_audit(
        db, "UPDATE", "ClientIntegration", integration.id, performed_by,
        old_values, sqlalchemy_to_dict(integration),
        meta={"client_id": integration.client_id},
    )
    db.commit()
    db.refresh(integration)
    return integration


def delete_integration(db: Session, integration_id: int, performed_by: str = None) -> None:
    integration = get_integration(db, integration_id)
    old_values = sqlalchemy_to_dict(integration)
    client_id = integration.client_id
    db.delete(integration)
    db.flush()
    record_audit(
        db, "DELETE", "ClientIntegration", integration_id, performed_by,
        old_values=old_values,
        meta={"client_id": client_id},
    )
    db.commit()
