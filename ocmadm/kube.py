"""ConfigMap model, an in-memory ConfigMap client and create-or-update logic."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field


class NotFoundError(LookupError):
    """The requested object does not exist."""


class AlreadyExistsError(Exception):
    """An object with the same namespace and name already exists."""


@dataclass
class ConfigMap:
    """A namespaced map of string data."""

    name: str
    namespace: str
    data: dict[str, str] = field(default_factory=dict)
    immutable: bool | None = None


class InMemoryConfigMapClient:
    """A ConfigMap store that keeps objects in memory and records every call."""

    def __init__(self, *config_maps: ConfigMap) -> None:
        self._items: dict[tuple[str, str], ConfigMap] = {
            (cm.namespace, cm.name): copy.deepcopy(cm) for cm in config_maps
        }
        self.actions: list[str] = []

    def get(self, namespace: str, name: str) -> ConfigMap:
        self.actions.append("get")
        try:
            return copy.deepcopy(self._items[(namespace, name)])
        except KeyError:
            raise NotFoundError(f'configmaps "{name}" not found') from None

    def create(self, config_map: ConfigMap) -> ConfigMap:
        self.actions.append("create")
        key = (config_map.namespace, config_map.name)
        if key in self._items:
            raise AlreadyExistsError(f'configmaps "{config_map.name}" already exists')
        self._items[key] = copy.deepcopy(config_map)
        return copy.deepcopy(config_map)

    def update(self, config_map: ConfigMap) -> ConfigMap:
        self.actions.append("update")
        key = (config_map.namespace, config_map.name)
        if key not in self._items:
            raise NotFoundError(f'configmaps "{config_map.name}" not found')
        self._items[key] = copy.deepcopy(config_map)
        return copy.deepcopy(config_map)


def create_or_update_config_map(client, config_map: ConfigMap) -> None:
    """Create the ConfigMap, or update it when it already exists."""
    try:
        client.create(config_map)
        return
    except AlreadyExistsError:
        pass
    except Exception as exc:
        raise RuntimeError(f"unable to create ConfigMap: {exc}") from exc
    try:
        client.update(config_map)
    except Exception as exc:
        raise RuntimeError(f"unable to update ConfigMap: {exc}") from exc