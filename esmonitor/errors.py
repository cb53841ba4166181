# esmonitor/errors.py


class MonitorError(Exception):
    """Error base de la herramienta de monitorización."""


class ClusterBuildError(MonitorError):
    """Un documento crudo no tiene la forma mínima para construir un snapshot."""


class ClusterFetchError(MonitorError):
    """Alguna de las peticiones de un ciclo de sondeo no devolvió datos."""


class AliasValidationError(MonitorError, ValueError):
    pass


class RepositoryValidationError(MonitorError, ValueError):
    pass
