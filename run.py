# run.py
import argparse
import sys

def run_tui():
    """Lanza el cliente de terminal."""
    print("Lanzando en modo Terminal (TUI)...")
    # Usamos un subproceso para que la TUI tenga su propio ciclo de vida
    import subprocess
    subprocess.run([sys.executable, "-m", "esmonitor.main"])


def run_api(host: str, port: int, reload: bool):
    """Lanza la API que sondea el clúster y expone snapshots y cambios."""
    import uvicorn

    print(f"Servidor API iniciado en http://{host}:{port} (docs en /docs)")
    uvicorn.run("esmonitor.api:app", host=host, port=port, reload=reload)

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Monitor de Clúster Elasticsearch - Elige el modo de ejecución.")
    parser.add_argument(
        '--mode',
        type=str,
        choices=['tui', 'api'],
        default='tui',
        help="Especifica el modo: 'tui' para terminal (default), 'api' para el servidor."
    )
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--reload', action='store_true', help="Recarga automática (desarrollo).")
    args = parser.parse_args()

    if args.mode == 'api':
        run_api(args.host, args.port, args.reload)
    else:
        run_tui()
