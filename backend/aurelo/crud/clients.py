from sqlalchemy.orm import Session

from aurelo.models.clients import Client
from aurelo.models.enums import ClientStatusEnum


def create_client(
    db: Session,
    workspace_id: int,
    *,
    name: str,
    email: str | None = None,
) -> Client:
    client = Client(
        workspace_id=workspace_id,
        name=name,
        email=email,
        status=ClientStatusEnum.ACTIVE.value,
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def get_client(db: Session, workspace_id: int, client_id: int) -> Client | None:
    return (
        db.query(Client)
        .filter(Client.workspace_id == workspace_id, Client.id == client_id)
        .first()
    )


def list_clients(
    db: Session,
    workspace_id: int,
    *,
    include_archived: bool = True,
) -> list[Client]:
    query = db.query(Client).filter(Client.workspace_id == workspace_id)
    if not include_archived:
        query = query.filter(Client.status != ClientStatusEnum.ARCHIVED.value)
    return query.order_by(Client.id).all()


def count_active_clients(db: Session, workspace_id: int) -> int:
    return (
        db.query(Client)
        .filter(
            Client.workspace_id == workspace_id,
            Client.status != ClientStatusEnum.ARCHIVED.value,
        )
        .count()
    )


def archive_client(db: Session, client: Client) -> Client:
    client.status = ClientStatusEnum.ARCHIVED.value
    db.commit()
    db.refresh(client)
    return client
