# esmonitor/models.py
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .config import MAX_VISIBLE_ALIASES
from .errors import AliasValidationError, RepositoryValidationError
from .utils import not_empty

# --- Nodos ---

class Node(BaseModel):
    """Nodo del clúster en un snapshot. Dos nodos son el mismo si comparten id."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ''
    transport_address: str = ''
    host: str = ''
    master: bool = True
    data: bool = True
    client: bool = False
    current_master: bool = False
    heap_used: str = '0'
    heap_committed: str = '0'
    heap_used_percent: float = 0
    heap_max: str = '0'
    disk_total: str = '0'
    disk_free: str = '0'
    disk_used_percent: int = 0
    cpu_user: float = 0
    cpu_sys: float = 0
    cpu_percent: float = 0
    docs: int = 0
    size_in_bytes: int = 0
    size: str = '0'

    def __eq__(self, other):
        return isinstance(other, Node) and other.id == self.id

    def __hash__(self):
        return hash(self.id)


def compare_nodes(a: Node, b: Node) -> int:
    # master actual, luego elegibles, luego nodos de datos, luego nombre
    if a.current_master != b.current_master:
        return -1 if a.current_master else 1
    if a.master != b.master:
        return -1 if a.master else 1
    if a.data != b.data:
        return -1 if a.data else 1
    return (a.name > b.name) - (a.name < b.name)


# --- Shards e Índices ---

class Shard(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: bool = False
    shard: int = 0
    state: str = ''
    node: Optional[str] = None
    index: str = ''
    info: Optional[Dict[str, Any]] = None

    @property
    def id(self) -> str:
        return f"{self.node}_{self.shard}_{self.index}"


class UnassignedShard(Shard):
    pass


class Index(BaseModel):
    """Índice del clúster en un snapshot. La identidad es el nombre."""
    model_config = ConfigDict(frozen=True)

    name: str
    state: str = 'close'
    num_of_shards: int = 0
    num_of_replicas: int = 0
    aliases: List[str] = Field(default_factory=list)
    num_docs: int = 0
    max_doc: int = 0
    deleted_docs: int = 0
    primary_size_in_bytes: int = 0
    size_in_bytes: int = 0
    primary_size: str = '0'
    total_size: str = '0'
    shards: Dict[str, List[Shard]] = Field(default_factory=dict)
    unassigned: List[UnassignedShard] = Field(default_factory=list)
    unhealthy: bool = False

    @computed_field
    @property
    def special(self) -> bool:
        return self.name.startswith(('.', '_'))

    def visible_aliases(self) -> List[str]:
        return self.aliases[:MAX_VISIBLE_ALIASES]

    def get_shards(self, node_id: str) -> List[Shard]:
        return self.shards.get(node_id, [])

    def is_open(self) -> bool:
        return self.state == 'open'

    def is_closed(self) -> bool:
        return self.state == 'close'

    def __eq__(self, other):
        return isinstance(other, Index) and other.name == self.name

    def __hash__(self):
        return hash(self.name)


# --- Aliases ---

def normalize_name(value) -> str:
    return str(value).strip().lower() if value is not None else ''


class Alias(BaseModel):
    """Asociación alias -> índice. La igualdad es estructural sobre los cinco campos."""
    alias: str = ''
    index: str = ''
    filter: Optional[Any] = None
    index_routing: str = ''
    search_routing: str = ''

    @field_validator('alias', 'index', mode='before')
    @classmethod
    def _lowercase(cls, value):
        return normalize_name(value)

    @field_validator('index_routing', 'search_routing', mode='before')
    @classmethod
    def _routing(cls, value):
        return str(value) if value is not None else ''

    @field_validator('filter', mode='before')
    @classmethod
    def _filter(cls, value):
        # el editor entrega el filtro como texto JSON
        if isinstance(value, str):
            return json.loads(value) if value.strip() else None
        return value or None

    def ensure_valid(self):
        if not not_empty(self.alias):
            raise AliasValidationError("El alias debe tener un nombre no vacío")
        if not not_empty(self.index):
            raise AliasValidationError("El alias debe apuntar a un índice válido")

    def info(self) -> dict:
        """Cuerpo de una acción add/remove de la API _aliases."""
        info = {'index': self.index, 'alias': self.alias}
        if self.filter is not None:
            info['filter'] = self.filter
        if not_empty(self.index_routing):
            info['index_routing'] = self.index_routing
        if not_empty(self.search_routing):
            info['search_routing'] = self.search_routing
        return info

    def clone(self) -> "Alias":
        return self.model_copy(deep=True)


class IndexAliases(BaseModel):
    index: str
    aliases: List[Alias] = Field(default_factory=list)

    @field_validator('index', mode='before')
    @classmethod
    def _lowercase(cls, value):
        return normalize_name(value)

    def clone(self) -> "IndexAliases":
        return IndexAliases(index=self.index, aliases=[alias.clone() for alias in self.aliases])


# --- Salud y Settings del Clúster ---

class ClusterHealth(BaseModel):
    status: str = 'unknown'
    cluster_name: str = ''
    initializing_shards: int = 0
    active_primary_shards: int = 0
    active_shards: int = 0
    relocating_shards: int = 0
    unassigned_shards: int = 0
    number_of_nodes: int = 0
    number_of_data_nodes: int = 0
    timed_out: bool = False
    fetched_at: str = Field(default_factory=lambda: datetime.now().strftime('%H:%M:%S'))

    @computed_field
    @property
    def shards(self) -> int:
        return self.active_shards + self.relocating_shards + self.unassigned_shards + self.initializing_shards


VALID_CLUSTER_SETTINGS = [
    # cluster
    'cluster.blocks.read_only',
    'indices.ttl.interval',
    'indices.cache.filter.size',
    'discovery.zen.minimum_master_nodes',
    # recovery
    'indices.recovery.concurrent_streams',
    'indices.recovery.compress',
    'indices.recovery.file_chunk_size',
    'indices.recovery.translog_ops',
    'indices.recovery.translog_size',
    'indices.recovery.max_bytes_per_sec',
    # routing
    'cluster.routing.allocation.node_initial_primaries_recoveries',
    'cluster.routing.allocation.cluster_concurrent_rebalance',
    'cluster.routing.allocation.awareness.attributes',
    'cluster.routing.allocation.node_concurrent_recoveries',
    'cluster.routing.allocation.disable_allocation',
    'cluster.routing.allocation.disable_replica_allocation',
]


class ClusterSettings(BaseModel):
    persistent: Dict[str, Any] = Field(default_factory=dict)
    transient: Dict[str, Any] = Field(default_factory=dict)


# --- Warmers, Snapshots y Repositorios ---

class Warmer(BaseModel):
    id: str
    index: str
    source: Any = None
    types: List[str] = Field(default_factory=list)


class RepositorySnapshot(BaseModel):
    name: str
    indices: List[str] = Field(default_factory=list)
    state: str = ''
    start_time: Optional[str] = None
    start_time_in_millis: int = 0
    end_time: Optional[str] = None
    end_time_in_millis: int = 0
    duration_in_millis: int = 0
    failures: List[Any] = Field(default_factory=list)
    shards: Dict[str, Any] = Field(default_factory=dict)


REPOSITORY_SETTINGS = {
    'fs': ['location', 'chunk_size', 'max_restore_bytes_per_sec', 'max_snapshot_bytes_per_sec', 'compress'],
    'url': ['url'],
    's3': ['region', 'bucket', 'base_path', 'access_key', 'secret_key', 'chunk_size', 'max_retries',
           'compress', 'server_side_encryption'],
    'hdfs': ['uri', 'path', 'load_defaults', 'conf_location', 'concurrent_streams', 'compress', 'chunk_size'],
    'azure': ['container', 'base_path', 'concurrent_streams', 'chunk_size', 'compress'],
}

REPOSITORY_REQUIRED_SETTINGS = {'fs': ['location'], 'url': ['url'], 's3': ['bucket'], 'hdfs': ['path']}


class Repository(BaseModel):
    name: str = ''
    type: str = ''
    settings: Dict[str, Any] = Field(default_factory=dict)

    def ensure_valid(self):
        if not not_empty(self.name):
            raise RepositoryValidationError("El nombre del repositorio es obligatorio")
        if not not_empty(self.type):
            raise RepositoryValidationError("El tipo del repositorio es obligatorio")
        for setting in REPOSITORY_REQUIRED_SETTINGS.get(self.type, []):
            if not not_empty(self.settings.get(setting)):
                raise RepositoryValidationError(f"'{setting}' es obligatorio para repositorios de tipo {self.type}")

    def get_settings(self, available: List[str]) -> dict:
        return {k: self.settings[k] for k in available if not_empty(self.settings.get(k))}

    def as_json(self) -> str:
        body = {'type': self.type}
        if self.type in REPOSITORY_SETTINGS:
            body['settings'] = self.get_settings(REPOSITORY_SETTINGS[self.type])
        return json.dumps(body)


# --- Parsers de respuestas ---

def parse_warmers(response: dict) -> List[Warmer]:
    warmers = []
    for index_name, info in (response or {}).items():
        for warmer_id, body in (info.get('warmers') or {}).items():
            warmers.append(Warmer(id=warmer_id, index=index_name, source=body.get('source'),
                                  types=body.get('types') or []))
    return warmers


def parse_snapshots(response: dict) -> List[RepositorySnapshot]:
    snapshots = []
    for info in (response or {}).get('snapshots', []):
        snapshots.append(RepositorySnapshot(name=info.get('snapshot', ''), **{
            k: v for k, v in info.items() if k in RepositorySnapshot.model_fields and k != 'name' and v is not None
        }))
    return snapshots


def parse_repositories(response: dict) -> List[Repository]:
    return [Repository(name=name, type=info.get('type', ''), settings=info.get('settings') or {})
            for name, info in (response or {}).items()]
