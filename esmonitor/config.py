# esmonitor/config.py
import os
import logging
from dotenv import load_dotenv
import urllib3

# --- Configuración Inicial ---
load_dotenv()
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

# Configuración del logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    filename=os.getenv("ES_MONITOR_LOG_FILE", "monitor_debug.log"),
    filemode='w'
)

# --- Conexión a Elasticsearch ---
ES_HOST = os.getenv("ES_HOST")
ES_USER = os.getenv("ES_USER")
ES_PASS = os.getenv("ES_PASS")
VERIFY_SSL = os.getenv("ES_VERIFY_SSL", "false").lower() == "true"
HEADERS = {'Content-Type': 'application/json'}
REQUEST_TIMEOUT = float(os.getenv("ES_REQUEST_TIMEOUT", "10"))

# --- Documentos crudos que componen un snapshot ---
CLUSTER_STATE_PATH = "_cluster/state/master_node,nodes,routing_table,routing_nodes,blocks"
INDICES_STATUS_PATH = "_status"
NODES_STATS_PATH = "_nodes/stats"
CLUSTER_SETTINGS_PATH = "_cluster/settings"
ALIASES_PATH = "_aliases"
CLUSTER_HEALTH_PATH = "_cluster/health"

# --- Parámetros de la Herramienta ---
REFRESH_INTERVAL = int(os.getenv("ES_REFRESH_INTERVAL", "5"))
FETCH_WORKERS = 5
DEFAULT_PAGE_SIZE = 10
MAX_VISIBLE_ALIASES = 5

# --- API local consumida por el cliente TUI ---
API_BASE_URL = os.getenv("ES_MONITOR_API", "http://127.0.0.1:8000")
