# esmonitor/utils.py
from collections.abc import Mapping
from typing import Any

BYTE_UNITS = ['b', 'KB', 'MB', 'GB', 'TB', 'PB']


def get_property(obj: Any, path: str, default: Any = None) -> Any:
    """
    Devuelve obj[a][b][c] para path "a.b.c", o default si algún tramo no existe.
    Primero prueba la clave completa, porque los settings pueden venir "planos".
    """
    if not isinstance(obj, Mapping):
        return default
    if obj.get(path) is not None:
        return obj[path]
    current = obj
    for part in path.split('.'):
        if not isinstance(current, Mapping):
            return default
        current = current.get(part)
        if current is None:
            return default
    return current


def not_empty(value: Any) -> bool:
    return value is not None and len(str(value).strip()) > 0


def readable_bytes(num_bytes) -> str:
    """Formatea bytes en base 1024 con dos decimales: 1024 -> '1.00KB'."""
    try:
        num_bytes = float(num_bytes)
    except (TypeError, ValueError):
        return "0"
    if num_bytes <= 0:
        return "0"
    # equivale a floor(log1024(bytes)) sin errores de coma flotante
    exponent = 0
    while exponent < len(BYTE_UNITS) - 1 and num_bytes >= 1024 ** (exponent + 1):
        exponent += 1
    return f"{num_bytes / 1024 ** exponent:.2f}{BYTE_UNITS[exponent]}"


def to_int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
