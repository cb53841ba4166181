# esmonitor/cluster.py
from collections.abc import Mapping
from datetime import datetime
from functools import cmp_to_key
from typing import List, Optional

from pydantic import BaseModel, Field

from .changes import ClusterChanges, compute_changes
from .errors import ClusterBuildError
from .models import (
    VALID_CLUSTER_SETTINGS, ClusterHealth, ClusterSettings, Index, Node, Shard,
    UnassignedShard, compare_nodes
)
from .utils import get_property, readable_bytes, to_int

ALLOCATION_ENABLE = 'cluster.routing.allocation.enable'


class Cluster(BaseModel):
    """Snapshot completo del clúster construido a partir de un ciclo de sondeo."""
    name: str
    master_node: Optional[str] = None
    allocation_enabled: bool = True
    settings: ClusterSettings = Field(default_factory=ClusterSettings)
    nodes: List[Node] = Field(default_factory=list)
    indices: List[Index] = Field(default_factory=list)
    number_of_nodes: int = 0
    special_indices: int = 0
    total_indices: int = 0
    num_docs: int = 0
    total_size_in_bytes: int = 0
    total_size: str = '0'
    shards: int = 0
    failed_shards: int = 0
    successful_shards: int = 0
    unassigned_shards: int = 0
    changes: Optional[ClusterChanges] = None
    created_at: datetime = Field(default_factory=datetime.now)

    def compute_changes(self, previous: Optional["Cluster"]) -> ClusterChanges:
        self.changes = compute_changes(self, previous)
        return self.changes

    def open_indices(self) -> List[Index]:
        return [index for index in self.indices if index.is_open()]

    def closed_indices(self) -> List[Index]:
        return [index for index in self.indices if index.is_closed()]

    def get_node(self, node_id: str) -> Optional[Node]:
        return next((node for node in self.nodes if node.id == node_id), None)

    def get_index(self, name: str) -> Optional[Index]:
        return next((index for index in self.indices if index.name == name), None)


# --- Construcción de entidades ---

def _role_flags(node_info: dict):
    attributes = node_info.get('attributes') or {}
    roles = node_info.get('roles')
    if roles is not None and not any(k in attributes for k in ('master', 'data', 'client')):
        return 'master' in roles, any(str(r).startswith('data') for r in roles), False
    return (attributes.get('master') != 'false',
            attributes.get('data') != 'false',
            attributes.get('client') == 'true')


def build_node(node_id: str, node_info: dict, node_stats: dict, current_master: bool = False) -> Node:
    master, data, client = _role_flags(node_info)

    total_in_bytes = to_int(get_property(node_stats, 'fs.total.total_in_bytes', 0))
    free_in_bytes = to_int(get_property(node_stats, 'fs.total.free_in_bytes', 0))
    disk_used_percent = round(100 * (total_in_bytes - free_in_bytes) / total_in_bytes) if total_in_bytes > 0 else 0
    size_in_bytes = to_int(get_property(node_stats, 'indices.store.size_in_bytes', 0))

    return Node(
        id=node_id,
        name=node_info.get('name') or '',
        transport_address=node_info.get('transport_address') or '',
        host=node_stats.get('host') or '',
        master=master and not client,
        data=data and not client,
        client=client or (not master and not data),
        current_master=current_master,
        heap_used=readable_bytes(get_property(node_stats, 'jvm.mem.heap_used_in_bytes', 0)),
        heap_committed=readable_bytes(get_property(node_stats, 'jvm.mem.heap_committed_in_bytes', 0)),
        heap_used_percent=get_property(node_stats, 'jvm.mem.heap_used_percent', 0),
        heap_max=readable_bytes(get_property(node_stats, 'jvm.mem.heap_max_in_bytes', 0)),
        disk_total=readable_bytes(total_in_bytes),
        disk_free=readable_bytes(free_in_bytes),
        disk_used_percent=disk_used_percent,
        cpu_user=get_property(node_stats, 'os.cpu.user', 0),
        cpu_sys=get_property(node_stats, 'os.cpu.sys', 0),
        cpu_percent=get_property(node_stats, 'os.cpu.percent', 0),
        docs=to_int(get_property(node_stats, 'indices.docs.count', 0)),
        size_in_bytes=size_in_bytes,
        size=readable_bytes(size_in_bytes),
    )


def _shard_status(index_status: Optional[dict], node: str, shard: int) -> Optional[dict]:
    for status in get_property(index_status, f'shards.{shard}', []) or []:
        if get_property(status, 'routing.node') == node and to_int(get_property(status, 'routing.shard'), -1) == shard:
            return status
    return None


def build_index(name: str, routing: Optional[dict] = None, status: Optional[dict] = None,
                aliases: Optional[dict] = None) -> Index:
    """
    Construye un índice combinando routing, estado y aliases.
    Sin routing se trata de un índice bloqueado: queda cerrado y sin shards.
    """
    alias_names = list((get_property(aliases, 'aliases', {}) or {}).keys())
    primary_size = to_int(get_property(status, 'index.primary_size_in_bytes', 0))
    total_size = to_int(get_property(status, 'index.size_in_bytes', 0))
    fields = dict(
        name=name,
        aliases=alias_names,
        num_docs=to_int(get_property(status, 'docs.num_docs', 0)),
        max_doc=to_int(get_property(status, 'docs.max_doc', 0)),
        deleted_docs=to_int(get_property(status, 'docs.deleted_docs', 0)),
        primary_size_in_bytes=primary_size,
        size_in_bytes=total_size,
        primary_size=readable_bytes(primary_size),
        total_size=readable_bytes(total_size),
    )
    if routing is None:
        return Index(state='close', **fields)

    shard_map = routing.get('shards') or {}
    first_copies = shard_map.get('0') or next(iter(shard_map.values()), [])

    shards, unassigned, unhealthy = {}, [], False
    for shard_num, copies in shard_map.items():
        for copy in copies:
            if copy.get('state') != 'STARTED':
                unhealthy = True
            shard_fields = dict(
                primary=bool(copy.get('primary')),
                shard=to_int(copy.get('shard', shard_num)),
                state=copy.get('state', ''),
                node=copy.get('node'),
                index=copy.get('index') or name,
            )
            if shard_fields['node'] is None:
                unassigned.append(UnassignedShard(**shard_fields))
            else:
                info = _shard_status(status, shard_fields['node'], shard_fields['shard'])
                shards.setdefault(shard_fields['node'], []).append(Shard(info=info, **shard_fields))

    return Index(
        state='open',
        num_of_shards=len(shard_map),
        num_of_replicas=max(len(first_copies) - 1, 0),
        shards=shards,
        unassigned=unassigned,
        unhealthy=unhealthy,
        **fields,
    )


def build_settings(settings: dict) -> ClusterSettings:
    # solo se leen las claves de la lista permitida
    selected = {}
    for kind in ('persistent', 'transient'):
        values = {key: get_property(settings.get(kind), key) for key in VALID_CLUSTER_SETTINGS}
        selected[kind] = {k: v for k, v in values.items() if v is not None}
    return ClusterSettings(**selected)


def is_allocation_enabled(settings: dict) -> bool:
    # el valor transitorio prevalece sobre el persistente
    transient = get_property(settings.get('transient'), ALLOCATION_ENABLE, '')
    if transient != '':
        return transient == 'all'
    return get_property(settings.get('persistent'), ALLOCATION_ENABLE, 'all') == 'all'


def build_cluster_health(health: dict) -> ClusterHealth:
    if not isinstance(health, Mapping):
        raise ClusterBuildError("El documento de salud del clúster no es un objeto JSON")
    return ClusterHealth(**{k: v for k, v in health.items() if k in ClusterHealth.model_fields and v is not None})


# --- Snapshot Builder ---

def _require_mapping(value, what: str) -> Mapping:
    if not isinstance(value, Mapping):
        raise ClusterBuildError(f"{what} ausente o con formato inválido")
    return value


def build_cluster(state: dict, status: dict, nodes_stats: dict, settings: dict, aliases: dict) -> Cluster:
    """Construye un snapshot a partir de los cinco documentos crudos de un ciclo."""
    _require_mapping(state, "Documento cluster-state")
    _require_mapping(status, "Documento de estado de índices")
    _require_mapping(nodes_stats, "Documento de estadísticas de nodos")
    _require_mapping(settings, "Documento de settings")
    _require_mapping(aliases, "Documento de aliases")

    name = state.get('cluster_name')
    if not name:
        raise ClusterBuildError("El cluster-state no contiene 'cluster_name'")
    nodes_state = _require_mapping(state.get('nodes'), "cluster-state 'nodes'")
    routing_table = _require_mapping(get_property(state, 'routing_table.indices'), "cluster-state 'routing_table.indices'")

    try:
        master_node = state.get('master_node')
        stats_nodes = nodes_stats.get('nodes') or {}
        nodes = [build_node(node_id, info or {}, stats_nodes.get(node_id) or {}, node_id == master_node)
                 for node_id, info in nodes_state.items()]
        nodes.sort(key=cmp_to_key(compare_nodes))

        status_indices = status.get('indices') or {}
        indices = [build_index(index_name, routing_table[index_name], status_indices.get(index_name), aliases.get(index_name))
                   for index_name in routing_table]
        blocked = get_property(state, 'blocks.indices', {}) or {}
        indices.extend(build_index(index_name, aliases=aliases.get(index_name))
                       for index_name in blocked if index_name not in routing_table)
        indices.sort(key=lambda index: index.name)

        total_size = sum(node.size_in_bytes for node in nodes)
        return Cluster(
            name=name,
            master_node=master_node,
            allocation_enabled=is_allocation_enabled(settings),
            settings=build_settings(settings),
            nodes=nodes,
            indices=indices,
            number_of_nodes=len(nodes),
            special_indices=sum(1 for index in indices if index.special),
            total_indices=len(indices),
            num_docs=sum(node.docs for node in nodes),
            total_size_in_bytes=total_size,
            total_size=readable_bytes(total_size),
            shards=to_int(get_property(status, '_shards.total', 0)),
            failed_shards=to_int(get_property(status, '_shards.failed', 0)),
            successful_shards=to_int(get_property(status, '_shards.successful', 0)),
            unassigned_shards=len(get_property(state, 'routing_nodes.unassigned', []) or []),
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise ClusterBuildError(f"No se pudo construir el snapshot de '{name}': {e}") from e
