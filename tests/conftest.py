import os

os.environ.setdefault("ES_MONITOR_LOG_FILE", os.devnull)

import copy

import pytest

from esmonitor.config import (
    ALIASES_PATH, CLUSTER_HEALTH_PATH, CLUSTER_SETTINGS_PATH, CLUSTER_STATE_PATH,
    INDICES_STATUS_PATH, NODES_STATS_PATH
)


def node_stats(docs, size, heap_percent=40, total_disk=1000, free_disk=250):
    return {
        "host": "10.0.0.1",
        "jvm": {"mem": {"heap_used_in_bytes": 512, "heap_committed_in_bytes": 1024,
                        "heap_used_percent": heap_percent, "heap_max_in_bytes": 2048}},
        "os": {"cpu": {"user": 3, "sys": 1, "percent": 12}},
        "fs": {"total": {"total_in_bytes": total_disk, "free_in_bytes": free_disk}},
        "indices": {"docs": {"count": docs}, "store": {"size_in_bytes": size}},
    }


def shard_copy(index, shard, node, primary, state="STARTED"):
    return {"index": index, "shard": shard, "node": node, "primary": primary, "state": state}


@pytest.fixture
def raw_documents():
    """Los cinco documentos crudos de un ciclo de sondeo."""
    state = {
        "cluster_name": "es-prod",
        "master_node": "n1",
        "nodes": {
            "n1": {"name": "alpha", "transport_address": "inet[/10.0.0.1:9300]", "attributes": {}},
            "n2": {"name": "beta", "transport_address": "inet[/10.0.0.2:9300]", "attributes": {"master": "false"}},
            "n3": {"name": "gamma", "transport_address": "inet[/10.0.0.3:9300]", "attributes": {"client": "true"}},
            "n4": {"name": "delta", "transport_address": "inet[/10.0.0.4:9300]", "attributes": {"data": "false"}},
        },
        "routing_table": {"indices": {
            "logs-2024": {"shards": {
                "0": [shard_copy("logs-2024", 0, "n1", True), shard_copy("logs-2024", 0, "n2", False)],
                "1": [shard_copy("logs-2024", 1, "n2", True), shard_copy("logs-2024", 1, None, False, "UNASSIGNED")],
            }},
            ".kibana": {"shards": {"0": [shard_copy(".kibana", 0, "n1", True)]}},
        }},
        "blocks": {"indices": {"closed-idx": {"4": {"description": "index closed"}}, "logs-2024": {}}},
        "routing_nodes": {"unassigned": [shard_copy("logs-2024", 1, None, False, "UNASSIGNED")]},
    }
    status = {
        "_shards": {"total": 4, "failed": 0, "successful": 3},
        "indices": {
            "logs-2024": {
                "docs": {"num_docs": 300, "deleted_docs": 2, "max_doc": 302},
                "index": {"primary_size_in_bytes": 1024, "size_in_bytes": 2048},
                "shards": {"0": [{"routing": {"node": "n1", "shard": 0}, "state": "STARTED"},
                                 {"routing": {"node": "n2", "shard": 0}, "state": "STARTED"}]},
            },
        },
    }
    stats = {"nodes": {
        "n1": node_stats(100, 1024),
        "n2": node_stats(200, 2048),
        "n4": node_stats(0, 0, total_disk=0, free_disk=0),
    }}
    settings = {"persistent": {"cluster.routing.allocation.enable": "all",
                               "indices.recovery.concurrent_streams": "3",
                               "unknown.setting": "x"},
                "transient": {}}
    aliases = {
        "logs-2024": {"aliases": {"logs": {}, "Recent": {"filter": {"term": {"level": "error"}}}}},
        ".kibana": {"aliases": {}},
    }
    return {"state": state, "status": status, "stats": stats, "settings": settings, "aliases": aliases}


@pytest.fixture
def build_args(raw_documents):
    def _build_args(**overrides):
        docs = copy.deepcopy(raw_documents)
        docs.update(overrides)
        return docs["state"], docs["status"], docs["stats"], docs["settings"], docs["aliases"]
    return _build_args


@pytest.fixture
def health_document():
    return {"cluster_name": "es-prod", "status": "yellow", "timed_out": False, "number_of_nodes": 4,
            "number_of_data_nodes": 2, "active_primary_shards": 3, "active_shards": 4,
            "relocating_shards": 0, "initializing_shards": 0, "unassigned_shards": 1}


class FakeClient:
    """Sustituye a ElasticsearchClient devolviendo documentos por ruta."""
    def __init__(self, documents):
        self.documents = documents
        self.calls = []

    def get(self, path, params=None, filter_path=None):
        self.calls.append(path)
        return copy.deepcopy(self.documents.get(path))


@pytest.fixture
def client_documents(raw_documents, health_document):
    return {
        CLUSTER_STATE_PATH: raw_documents["state"],
        INDICES_STATUS_PATH: raw_documents["status"],
        NODES_STATS_PATH: raw_documents["stats"],
        CLUSTER_SETTINGS_PATH: raw_documents["settings"],
        ALIASES_PATH: raw_documents["aliases"],
        CLUSTER_HEALTH_PATH: health_document,
    }


@pytest.fixture
def fake_client(client_documents):
    return FakeClient(client_documents)


@pytest.fixture
def client_factory():
    return FakeClient
