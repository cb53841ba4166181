# esmonitor/monitor.py
import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from .aliases import parse_aliases
from .client import ElasticsearchClient
from .cluster import Cluster, build_cluster, build_cluster_health
from .config import (
    ALIASES_PATH, CLUSTER_HEALTH_PATH, CLUSTER_SETTINGS_PATH, CLUSTER_STATE_PATH,
    FETCH_WORKERS, INDICES_STATUS_PATH, NODES_STATS_PATH
)
from .errors import ClusterBuildError, ClusterFetchError
from .models import (
    ClusterHealth, IndexAliases, Repository, RepositorySnapshot, Warmer,
    parse_repositories, parse_snapshots, parse_warmers
)

SNAPSHOT_PATHS = [CLUSTER_STATE_PATH, INDICES_STATUS_PATH, NODES_STATS_PATH, CLUSTER_SETTINGS_PATH, ALIASES_PATH]


class ClusterMonitor:
    """
    Orquesta el sondeo del clúster: recolección concurrente de los documentos crudos,
    construcción del snapshot y detección de cambios contra el último snapshot válido.

    Cada ciclo recibe un número de generación creciente; si un ciclo lento termina
    después de que otro más nuevo ya se publicó, su resultado se descarta.
    """
    def __init__(self, client: ElasticsearchClient, workers: int = FETCH_WORKERS):
        self.client = client
        self.workers = workers
        self.cluster: Optional[Cluster] = None
        self.cluster_health: Optional[ClusterHealth] = None
        self.last_error: Optional[str] = None
        self.last_fetch_time = None
        self._lock = threading.Lock()
        self._generation = 0
        self._published_generation = 0

    def _fetch(self, path, params=None):
        document = self.client.get(path, params=params)
        if document is None:
            raise ClusterFetchError(f"Sin respuesta para '{path}'")
        return document

    def fetch_documents(self) -> list:
        """Lanza las cinco peticiones en paralelo y espera a todas."""
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            documents = list(executor.map(self.client.get, SNAPSHOT_PATHS))
        missing = [path for path, document in zip(SNAPSHOT_PATHS, documents) if document is None]
        if missing:
            raise ClusterFetchError(f"Sin respuesta para: {', '.join(missing)}")
        return documents

    def refresh(self) -> Optional[Cluster]:
        """Ejecuta un ciclo de sondeo y devuelve el snapshot publicado (el nuevo o el anterior)."""
        with self._lock:
            self._generation += 1
            generation = self._generation
        self.last_fetch_time = time.time()

        try:
            cluster = build_cluster(*self.fetch_documents())
        except ClusterFetchError as e:
            logging.warning(f"Ciclo {generation} abortado, se conserva el snapshot anterior: {e}")
            self.last_error = str(e)
            return self.cluster
        except ClusterBuildError as e:
            logging.error(f"Ciclo {generation}: error construyendo el snapshot: {e}", exc_info=True)
            self.last_error = str(e)
            return self.cluster

        with self._lock:
            if generation < self._published_generation:
                logging.warning(f"Ciclo {generation} descartado: ya se publicó el ciclo {self._published_generation}")
                return self.cluster
            cluster.compute_changes(self.cluster)
            self.cluster = cluster
            self._published_generation = generation
            self.last_error = None

        logging.info(f"Snapshot de '{cluster.name}' publicado (ciclo {generation}): "
                     f"{cluster.number_of_nodes} nodos, {cluster.total_indices} índices")
        for message in cluster.changes.describe():
            logging.info(message)
        return cluster

    def refresh_health(self) -> Optional[ClusterHealth]:
        health = self.client.get(CLUSTER_HEALTH_PATH)
        if health is None:
            logging.warning("No se pudo obtener la salud del clúster.")
            self.cluster_health = None
            return None
        try:
            self.cluster_health = build_cluster_health(health)
        except ClusterBuildError as e:
            logging.warning(f"Documento de salud inválido: {e}")
            self.cluster_health = None
        return self.cluster_health

    def load_aliases(self) -> List[IndexAliases]:
        return parse_aliases(self._fetch(ALIASES_PATH))

    def load_warmers(self, index: str = '_all', warmer: str = '') -> List[Warmer]:
        return parse_warmers(self._fetch(f"{index}/_warmer/{warmer.strip()}"))

    def load_snapshots(self, repository: str) -> List[RepositorySnapshot]:
        return parse_snapshots(self._fetch(f"_snapshot/{repository}/_all"))

    def load_repositories(self) -> List[Repository]:
        return parse_repositories(self._fetch("_snapshot/_all"))

    def run(self, interval: float, stop_event: threading.Event):
        """Bucle de sondeo a intervalo fijo hasta que se active stop_event."""
        while not stop_event.is_set():
            self.refresh()
            self.refresh_health()
            stop_event.wait(interval)
