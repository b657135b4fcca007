from __future__ import annotations

from fieldops.domain.entities import ApplianceEntity, ClientEntity
from fieldops.infra.repository import ClientRepository

CLIENT_FIELDS = ("name", "email", "phone", "address")
APPLIANCE_FIELDS = ("client_id", "name", "maker", "serial_number", "age_years")


class ClientService:
    def __init__(self, repo: ClientRepository) -> None:
        self._repo = repo

    def list_clients(self, search: str | None = None) -> list[ClientEntity]:
        search = (search or "").strip()
        return self._repo.list_clients(search or None)

    def get_client(self, client_id: int) -> ClientEntity | None:
        return self._repo.get_client(client_id)

    def create_client(self, data: dict) -> ClientEntity:
        normalized = {key: (data.get(key) or "").strip() for key in CLIENT_FIELDS}
        if not normalized["name"]:
            raise ValueError("Client name is required")
        return self._repo.create_client(normalized)

    def list_appliances(self, client_id: int) -> list[ApplianceEntity]:
        return self._repo.list_appliances(client_id)

    def get_appliance(self, appliance_id: int) -> ApplianceEntity | None:
        return self._repo.get_appliance(appliance_id)

    def create_appliance(self, data: dict) -> ApplianceEntity:
        normalized = {key: data.get(key) for key in APPLIANCE_FIELDS}
        for key in ("name", "maker", "serial_number"):
            normalized[key] = (normalized[key] or "").strip()
        if not normalized["name"]:
            raise ValueError("Appliance name is required")
        if normalized["client_id"] is None:
            raise ValueError("Appliance must belong to a client")
        return self._repo.create_appliance(normalized)
