# esmonitor/api.py
from functools import lru_cache
from typing import List

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import analysis
from .aliases import alias_actions, reconcile
from .client import ElasticsearchClient
from .config import ES_HOST, ES_USER, ES_PASS, VERIFY_SSL, DEFAULT_PAGE_SIZE
from .errors import AliasValidationError, ClusterFetchError, RepositoryValidationError
from .filters import AliasFilter, IndexFilter, NodeFilter, SnapshotFilter, WarmerFilter
from .models import IndexAliases
from .monitor import ClusterMonitor
from .pagination import Paginator

app = FastAPI(title="Elastic Cluster Monitor API")

@lru_cache(maxsize=1)
def get_monitor() -> ClusterMonitor:
    # un único monitor por proceso: la detección de cambios necesita el snapshot anterior
    client = ElasticsearchClient(ES_HOST, ES_USER, ES_PASS, VERIFY_SSL)
    if not client.cluster_info: raise HTTPException(status_code=503, detail="No se pudo conectar a Elasticsearch.")
    return ClusterMonitor(client)

def require_cluster(monitor: ClusterMonitor):
    cluster = monitor.cluster or monitor.refresh()
    if cluster is None:
        raise HTTPException(status_code=503, detail=f"No hay snapshot disponible: {monitor.last_error}")
    return cluster

def paged(collection, filter, page: int, page_size: int, serializer) -> dict:
    paginator = Paginator(page, page_size, collection, filter)
    payload = analysis.page_payload(paginator.get_page(), serializer)
    payload["page"] = paginator.page
    return payload

def repository_row(repository) -> dict:
    try:
        repository.ensure_valid(); error = None
    except RepositoryValidationError as e:
        error = str(e)
    return {**repository.model_dump(mode='json'), "error": error}

class AliasDiffRequest(BaseModel):
    original: List[IndexAliases]
    modified: List[IndexAliases]

@app.exception_handler(ClusterFetchError)
def fetch_error_handler(request: Request, exc: ClusterFetchError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})

@app.exception_handler(AliasValidationError)
def validation_error_handler(request: Request, exc: AliasValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})

# --- Snapshot del Clúster ---
@app.get("/api/v1/cluster", tags=["Clúster"])
def ep_cluster_overview(monitor: ClusterMonitor = Depends(get_monitor)):
    data = analysis.get_cluster_overview(monitor)
    if data["cluster"] is None: raise HTTPException(status_code=503, detail=f"No hay snapshot disponible: {data['error']}")
    return data

@app.get("/api/v1/cluster/changes", tags=["Clúster"])
def ep_cluster_changes(monitor: ClusterMonitor = Depends(get_monitor)):
    return analysis.get_changes_data(require_cluster(monitor))

@app.get("/api/v1/cluster/health", tags=["Clúster"])
def ep_cluster_health(monitor: ClusterMonitor = Depends(get_monitor)):
    health = monitor.refresh_health()
    if health is None: raise HTTPException(status_code=503, detail="No se pudo obtener la salud del clúster.")
    return health

@app.get("/api/v1/cluster/allocation", tags=["Clúster"])
def ep_shard_allocation(monitor: ClusterMonitor = Depends(get_monitor)):
    frame = analysis.shard_allocation_frame(require_cluster(monitor))
    return {"nodes": list(frame.index), "indices": list(frame.columns), "matrix": frame.values.tolist()}

# --- Colecciones paginadas ---
@app.get("/api/v1/nodes", tags=["Colecciones"])
def ep_nodes(name: str = "", master: bool = True, data: bool = True, client: bool = True,
             page: int = Query(1, ge=1), page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
             monitor: ClusterMonitor = Depends(get_monitor)):
    node_filter = NodeFilter(name=name, master=master, data=data, client=client)
    return paged(require_cluster(monitor).nodes, node_filter, page, page_size, analysis.node_row)

@app.get("/api/v1/indices", tags=["Colecciones"])
def ep_indices(name: str = "", state: str = Query("", pattern="^(|open|close|unhealthy)$"), hide_special: bool = False,
               page: int = Query(1, ge=1), page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
               monitor: ClusterMonitor = Depends(get_monitor)):
    index_filter = IndexFilter(name=name, state=state, hide_special=hide_special)
    return paged(require_cluster(monitor).indices, index_filter, page, page_size, analysis.index_row)

@app.get("/api/v1/aliases", tags=["Aliases"])
def ep_aliases(index: str = "", alias: str = "",
               page: int = Query(1, ge=1), page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
               monitor: ClusterMonitor = Depends(get_monitor)):
    return paged(monitor.load_aliases(), AliasFilter(index=index, alias=alias), page, page_size,
                 lambda group: group.model_dump(mode='json'))

@app.post("/api/v1/aliases/diff", tags=["Aliases"])
def ep_aliases_diff(request: AliasDiffRequest):
    """
    Reconcilia la copia editada con la base: devuelve altas, bajas y el cuerpo para _aliases.
    """
    for group in request.modified:
        for alias in group.aliases: alias.ensure_valid()
    adds, removes = reconcile(request.original, request.modified)
    return {"add": [a.info() for a in adds], "remove": [a.info() for a in removes], "actions": alias_actions(adds, removes)}

@app.get("/api/v1/warmers/{index}", tags=["Colecciones"])
def ep_warmers(index: str, id: str = "",
               page: int = Query(1, ge=1), page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
               monitor: ClusterMonitor = Depends(get_monitor)):
    return paged(monitor.load_warmers(index), WarmerFilter(id=id), page, page_size, lambda w: w.model_dump(mode='json'))

@app.get("/api/v1/snapshots/{repository}", tags=["Colecciones"])
def ep_snapshots(repository: str,
                 page: int = Query(1, ge=1), page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
                 monitor: ClusterMonitor = Depends(get_monitor)):
    return paged(monitor.load_snapshots(repository), SnapshotFilter(), page, page_size, lambda s: s.model_dump(mode='json'))

@app.get("/api/v1/repositories", tags=["Colecciones"])
def ep_repositories(monitor: ClusterMonitor = Depends(get_monitor)):
    return [repository_row(r) for r in monitor.load_repositories()]

@app.get("/health", tags=["Sistema"])
def health_check():
    return {"status": "ok"}
