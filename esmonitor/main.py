# esmonitor/main.py
import json
import time
import httpx
import argparse
from rich.console import Console
from rich.prompt import Prompt, Confirm
from rich.rule import Rule
from rich.live import Live
import esmonitor.renderer as renderer
from esmonitor.config import REFRESH_INTERVAL, API_BASE_URL, DEFAULT_PAGE_SIZE

console = Console()
API_V1 = f"{API_BASE_URL}/api/v1"

def check_api_health():
    """Verifica si el servidor de la API está en ejecución."""
    try:
        with console.status("[yellow]Verificando conexión con la API...[/yellow]"):
            response = httpx.get(f"{API_BASE_URL}/health", timeout=2)
            response.raise_for_status()
        console.print("[bold green]✔ Conexión con la API establecida.[/bold green]")
        return True
    except (httpx.RequestError, httpx.HTTPStatusError):
        console.print("\n[bold red]❌ Error: No se pudo conectar al servidor de la API.[/bold red]")
        console.print("Por favor, inicia el servidor en otro terminal con: [cyan]python run.py --mode api[/cyan]\n")
        return False

# --- Handlers ---
def ui_run_live_dashboard():
    try:
        with Live(console=console, screen=True, auto_refresh=False, vertical_overflow="visible") as live:
            while True:
                response = httpx.get(f"{API_V1}/cluster", timeout=30.0)
                response.raise_for_status()
                live.update(renderer.render_live_dashboard(response.json()), refresh=True)
                time.sleep(REFRESH_INTERVAL)
    except KeyboardInterrupt: console.print("\n[bold]Volviendo al menú principal...[/bold]")
    except httpx.RequestError as e: console.print(f"[red]Error de API: {e}[/red]")
    except httpx.HTTPStatusError as e: console.print(f"[red]Error en la respuesta de la API ({e.response.status_code}): {e.response.text}[/red]")

def browse_pages(endpoint: str, params: dict, render_function):
    """Navega una colección paginada: n = siguiente, p = anterior, q = salir."""
    params = {**params, "page": 1, "page_size": DEFAULT_PAGE_SIZE}
    while True:
        try:
            response = httpx.get(f"{API_V1}{endpoint}", params=params, timeout=30.0)
            response.raise_for_status()
        except httpx.RequestError as e: console.print(f"[red]Error de API: {e}[/red]"); return
        except httpx.HTTPStatusError as e: console.print(f"[red]Error en la respuesta de la API ({e.response.status_code}): {e.response.text}[/red]"); return
        data = response.json()
        params["page"] = data.get("page", params["page"])
        console.print(render_function(data))
        choices = ["q"] + (["n"] if data.get("next") else []) + (["p"] if data.get("previous") else [])
        option = Prompt.ask("Página", choices=choices, default="q")
        if option == "q": return
        params["page"] += 1 if option == "n" else -1

def ui_browse_indices():
    name = Prompt.ask("Filtro por nombre (regex)", default="")
    state = Prompt.ask("Estado", choices=["", "open", "close", "unhealthy"], default="")
    hide_special = Confirm.ask("¿Ocultar índices especiales (. y _)?", default=True)
    browse_pages("/indices", {"name": name, "state": state, "hide_special": hide_special}, renderer.render_index_page)

def ui_browse_nodes():
    name = Prompt.ask("Filtro por nombre", default="")
    roles = {role: Confirm.ask(f"¿Incluir nodos {role}?", default=True) for role in ["master", "data", "client"]}
    browse_pages("/nodes", {"name": name, **roles}, renderer.render_node_page)

def ui_reconcile_aliases():
    """Compara los aliases actuales con una copia editada en un fichero JSON."""
    path = Prompt.ask("Ruta del fichero con la copia editada (lista de {index, aliases})")
    try:
        with open(path) as f: modified = json.load(f)
        original = []
        page = 1
        while True:
            response = httpx.get(f"{API_V1}/aliases", params={"page": page, "page_size": 100}, timeout=30.0)
            response.raise_for_status()
            data = response.json()
            original.extend(e for e in data["elements"] if e is not None)
            if not data["next"]: break
            page += 1
        response = httpx.post(f"{API_V1}/aliases/diff", json={"original": original, "modified": modified}, timeout=30.0)
        response.raise_for_status()
        renderer.render_alias_diff(response.json())
    except (OSError, json.JSONDecodeError) as e: console.print(f"[red]No se pudo leer el fichero: {e}[/red]")
    except httpx.RequestError as e: console.print(f"[red]Error de API: {e}[/red]")
    except httpx.HTTPStatusError as e: console.print(f"[red]Error en la respuesta de la API ({e.response.status_code}): {e.response.text}[/red]")

def main_interactive_tui():
    """Función principal que muestra el menú TUI y controla el flujo."""
    console.print(Rule("[bold]Monitor de Clúster Elasticsearch (Cliente TUI)[/bold]"))
    if not check_api_health(): return

    menu_options = {
        "1": ("📈 Dashboard del Clúster en Vivo", ui_run_live_dashboard),
        "2": ("🗂️ Explorar Índices", ui_browse_indices),
        "3": ("🖥️ Explorar Nodos", ui_browse_nodes),
        "4": ("🔗 Reconciliar Aliases", ui_reconcile_aliases),
        "salir": ("🚪 Salir", lambda: "exit")
    }

    while True:
        console.rule("[bold cyan]Menú Principal[/bold cyan]")
        for key, (desc, _) in menu_options.items():
            console.print(f"[bold]{key}[/bold]: {desc}")

        main_option = Prompt.ask("\n[bold]Elige una opción[/bold]", choices=list(menu_options.keys()))
        result = menu_options[main_option][1]()

        if result == "exit":
            console.print("[bold red]Saliendo del sistema...[/bold red]"); break

        Prompt.ask("\n[bold]Presiona Enter para volver al menú...[/bold]", default="")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Monitor de Clúster Elasticsearch (cliente TUI).")
    parser.parse_args()
    try:
        main_interactive_tui()
    except KeyboardInterrupt:
        console.print("\n[bold]Interrupción por teclado. Saliendo...[/bold]")
    except Exception:
        console.print_exception(show_locals=True)
