# esmonitor/renderer.py
from datetime import datetime
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.layout import Layout
from rich.markup import escape

console = Console()

# --- Funciones de formato ---
def format_delta(value: int, readable: str = None) -> str:
    text = readable if readable is not None else f"{abs(value):,}"
    if value > 0: return f"[green]🔼 {text}[/green]"
    if value < 0: return f"[red]🔽 {text}[/red]"
    return text

def _role_style(role: str) -> str:
    return {"master*": "bold yellow", "master": "yellow", "data": "cyan"}.get(role, "white")

# --- Componentes Internos de Renderizado ---

def _render_header(data: dict) -> Panel:
    cluster = data.get('cluster') or {}; health = data.get('health') or {}; changes = data.get('changes') or {}
    status = str(health.get('status', 'N/A')).upper()
    status_color = {"GREEN": "green", "YELLOW": "yellow", "RED": "red"}.get(status, "white")
    allocation = "[green]habilitada[/green]" if cluster.get('allocation_enabled') else "[bold red]deshabilitada[/bold red]"
    summary = (f"Cluster: [b]{escape(str(cluster.get('name', 'N/A')))}[/b] | Status: [b {status_color}]{status}[/b {status_color}] | "
               f"Última Actualización: {datetime.now().strftime('%H:%M:%S')}\n"
               f"Nodos: {cluster.get('number_of_nodes', 0)} | Índices: {cluster.get('total_indices', 0)} | "
               f"Docs: {cluster.get('num_docs', 0):,} ({format_delta(changes.get('doc_delta', 0))}) | "
               f"Tamaño: {cluster.get('total_size', '0')} ({format_delta(changes.get('data_delta', 0), changes.get('abs_data_delta'))}) | "
               f"Shards: {cluster.get('shards', 0)} (no asignados: [bold red]{cluster.get('unassigned_shards', 0)}[/bold red]) | Asignación: {allocation}")
    if data.get('error'): summary += f"\n[yellow]⚠ Último ciclo fallido: {escape(str(data['error']))}[/yellow]"
    return Panel(summary, title="[b cyan]Monitor de Clúster Elasticsearch[/b cyan]", border_style="cyan")

def render_nodes_table(nodes: list, title: str = "Nodos") -> Panel:
    if not nodes: return Panel("[yellow]Esperando datos de nodos...[/yellow]", border_style="yellow")
    table = Table(title=f"[b]{title}[/b]", expand=True)
    cols = ["Rol", "Nodo", "Dirección", "Heap%", "Disco%", "CPU%", "Docs", "Tamaño"]
    justifies = ["left", "left", "left", "right", "right", "right", "right", "right"]
    for col, justify in zip(cols, justifies): table.add_column(col, justify=justify)
    for n in nodes:
        if n is None: table.add_row(*[""] * len(cols)); continue
        role = n.get('role', '')
        table.add_row(f"[{_role_style(role)}]{role}[/]", escape(n.get('name') or ''), escape(n.get('transport_address') or ''),
                      f"{n.get('heap_used_percent', 0):.0f}", f"{n.get('disk_used_percent', 0)}", f"{n.get('cpu_percent', 0):.0f}",
                      f"{n.get('docs', 0):,}", str(n.get('size', '0')))
    return Panel(table, border_style="green")

def render_changes(changes: dict) -> Panel:
    messages = changes.get('messages', [])
    if not messages: return Panel("[green]✅ Sin cambios de topología desde el último ciclo.[/green]", title="[b cyan]Cambios[/b cyan]", border_style="green")
    lines = []
    for message in messages:
        style = "yellow" if "abandonaron" in message or "eliminados" in message else "cyan"
        lines.append(f"- [{style}]{escape(message)}[/{style}]")
    return Panel("\n".join(lines), title="[b yellow]Cambios Detectados[/b yellow]", border_style="yellow")

# --- Renderers Públicos ---

def render_live_dashboard(data: dict) -> Layout:
    layout = Layout(name="root"); layout.split(Layout(name="header", size=5), Layout(ratio=1, name="main"), Layout(size=7, name="footer"))
    layout["header"].update(_render_header(data))
    layout["main"].update(render_nodes_table(data.get('nodes', []), "Nodos (master actual primero)"))
    layout["footer"].update(render_changes(data.get('changes') or {}))
    return layout

def render_index_page(data: dict) -> Panel:
    table = Table(title=f"Índices {data.get('first', 0)}-{data.get('last', 0)} de {data.get('total', 0)}", expand=True)
    for col in ["Índice", "Estado", "Shards", "Réplicas", "Docs", "Tamaño", "Aliases"]: table.add_column(col)
    for row in data.get('elements', []):
        if row is None: table.add_row(*[""] * 7); continue
        name = f"[dim]{escape(row['name'])}[/dim]" if row.get('special') else escape(row['name'])
        state = "[red]unhealthy[/red]" if row.get('unhealthy') else ("[green]open[/green]" if row['state'] == 'open' else "[yellow]close[/yellow]")
        table.add_row(name, state, str(row['num_of_shards']), str(row['num_of_replicas']), f"{row['num_docs']:,}", str(row['total_size']), escape(row.get('aliases') or ''))
    nav = " | ".join(x for x in ["[b]p[/b]: anterior" if data.get('previous') else "", "[b]n[/b]: siguiente" if data.get('next') else ""] if x)
    return Panel(table, subtitle=nav or None, border_style="cyan")

def render_node_page(data: dict) -> Panel:
    return render_nodes_table(data.get('elements', []), f"Nodos {data.get('first', 0)}-{data.get('last', 0)} de {data.get('total', 0)}")

def render_alias_diff(data: dict):
    if not data.get('add') and not data.get('remove'): console.print("[yellow]No se realizaron cambios: nada que guardar.[/yellow]"); return
    table = Table(title="Acciones sobre Aliases")
    table.add_column("Acción"); table.add_column("Índice", style="cyan"); table.add_column("Alias"); table.add_column("Filtro/Routing")
    for action in data.get('actions', {}).get('actions', []):
        kind, info = next(iter(action.items()))
        extra = escape(", ".join(f"{k}={v}" for k, v in info.items() if k not in ('index', 'alias')))
        table.add_row("[green]add[/green]" if kind == 'add' else "[red]remove[/red]", escape(info['index']), escape(info['alias']), extra)
    console.print(table)
