# esmonitor/analysis.py
import pandas as pd

from .cluster import Cluster
from .models import Index, Node
from .pagination import Page

NODE_COLUMNS = ['id', 'name', 'role', 'transport_address', 'heap_used_percent', 'disk_used_percent',
                'cpu_percent', 'docs', 'size_in_bytes', 'size']
INDEX_COLUMNS = ['name', 'state', 'num_of_shards', 'num_of_replicas', 'num_docs', 'size_in_bytes',
                 'total_size', 'aliases', 'special', 'unhealthy']

# --- Tablas de un snapshot ---

def node_role(node: Node) -> str:
    if node.current_master: return 'master*'
    if node.master: return 'master'
    if node.data: return 'data'
    return 'client'

def node_row(node: Node) -> dict:
    row = {col: getattr(node, col) for col in NODE_COLUMNS if col != 'role'}
    row['role'] = node_role(node)
    return row

def index_row(index: Index) -> dict:
    row = {col: getattr(index, col) for col in INDEX_COLUMNS if col != 'aliases'}
    row['aliases'] = ", ".join(index.visible_aliases())
    return row

def nodes_frame(cluster: Cluster) -> pd.DataFrame:
    # conserva el orden del snapshot (master actual primero)
    return pd.DataFrame([node_row(n) for n in cluster.nodes], columns=NODE_COLUMNS)

def indices_frame(cluster: Cluster) -> pd.DataFrame:
    return pd.DataFrame([index_row(i) for i in cluster.indices], columns=INDEX_COLUMNS)

def shard_allocation_frame(cluster: Cluster) -> pd.DataFrame:
    """Matriz nodo x índice con el número de copias de shard alojadas en cada nodo."""
    node_names = {n.id: n.name for n in cluster.nodes}
    records = []
    for index in cluster.indices:
        for node_id, shards in index.shards.items():
            for shard in shards:
                records.append({'node': node_names.get(node_id, node_id), 'index': index.name, 'primary': shard.primary})
        for shard in index.unassigned:
            records.append({'node': 'unassigned', 'index': index.name, 'primary': shard.primary})
    if not records:
        return pd.DataFrame(index=[n.name for n in cluster.nodes])

    df = pd.DataFrame(records)
    pivot = df.pivot_table(index='node', columns='index', values='primary', aggfunc='count', fill_value=0)
    rows = [n.name for n in cluster.nodes] + (['unassigned'] if 'unassigned' in pivot.index else [])
    return pivot.reindex(rows, fill_value=0).astype(int)

# --- Payloads para la API ---

def cluster_summary(cluster: Cluster) -> dict:
    return cluster.model_dump(mode='json', exclude={'nodes', 'indices', 'changes'})

def get_changes_data(cluster: Cluster) -> dict:
    changes = cluster.changes
    if changes is None:
        return {"has_changes": False, "node_joins": [], "node_leaves": [], "indices_created": [],
                "indices_deleted": [], "doc_delta": 0, "data_delta": 0, "abs_doc_delta": 0,
                "abs_data_delta": "0", "messages": []}
    return {
        "has_changes": changes.has_changes(),
        "node_joins": [node_row(n) for n in changes.node_joins or []],
        "node_leaves": [node_row(n) for n in changes.node_leaves or []],
        "indices_created": [i.name for i in changes.indices_created or []],
        "indices_deleted": [i.name for i in changes.indices_deleted or []],
        "doc_delta": changes.doc_delta, "data_delta": changes.data_delta,
        "abs_doc_delta": changes.abs_doc_delta(), "abs_data_delta": changes.abs_data_delta(),
        "messages": changes.describe(),
    }

def get_cluster_overview(monitor) -> dict:
    """Ejecuta un ciclo de sondeo y arma los datos del dashboard en vivo."""
    cluster = monitor.refresh()
    health = monitor.refresh_health()
    if cluster is None:
        return {"cluster": None, "error": monitor.last_error}
    return {
        "cluster": cluster_summary(cluster),
        "health": health.model_dump(mode='json') if health else None,
        "changes": get_changes_data(cluster),
        "nodes": nodes_frame(cluster).to_dict('records'),
        "error": monitor.last_error,
        "last_fetch_time": monitor.last_fetch_time,
    }

def page_payload(page: Page, serializer) -> dict:
    return {
        "elements": [serializer(e) if e is not None else None for e in page.elements],
        "total": page.total, "first": page.first, "last": page.last,
        "next": page.next, "previous": page.previous,
    }
