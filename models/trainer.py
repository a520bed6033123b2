"""Datenmodell für einen Trainer (Pydantic v2)."""

from pydantic import BaseModel


class Trainer(BaseModel):
    """Ressource, die per Sammelzuweisung mehreren Terminen zugeordnet wird."""

    id: str
    name: str
    active: bool = True
