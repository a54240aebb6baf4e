"""CLI commands against the seeded demo workspace.

Usage:
    workforce-admin demo summary
    workforce-admin demo check-permission <user_id> <asset_id> <permission_id>
    workforce-admin demo pages <user_id> <asset_id>
"""

from __future__ import annotations

import typer

from src.config import get_settings
from src.core.seed import seed_demo_data
from src.core.workspace import Workspace

demo_app = typer.Typer(help="Inspect the demo workspace")


def demo_workspace() -> Workspace:
    """A freshly seeded in-memory workspace."""
    settings = get_settings()
    workspace = Workspace(
        propagation_policy=settings.workforce.propagation_policy,
        bcrypt_rounds=settings.admin.bcrypt_rounds,
    )
    return seed_demo_data(workspace)


@demo_app.command("summary")
def summary() -> None:
    """Show entity counts of the demo workspace."""
    ws = demo_workspace()
    counts = [
        ("Asset types", len(ws.asset_type_configs)),
        ("Assets", len(ws.assets)),
        ("Users", len(ws.users)),
        ("Project templates", len(ws.project_templates)),
        ("Recurring task rules", len(ws.recurring_task_templates)),
        ("Recurring project rules", len(ws.recurring_project_templates)),
        ("Active projects", len(ws.active_projects)),
        ("Action items", len(ws.action_items)),
        ("Courses", len(ws.courses)),
        ("Learning paths", len(ws.learning_paths)),
        ("Enrollments", len(ws.enrollments)),
        ("Certifications", len(ws.certifications)),
    ]

    typer.echo(typer.style("Demo workspace", bold=True))
    typer.echo("-" * 40)
    for label, count in counts:
        typer.echo(f"  {label:<26} {count:>5}")


@demo_app.command("check-permission")
def check_permission(
    user_id: str = typer.Argument(..., help="User id, e.g. user-alex-chen"),
    asset_id: str = typer.Argument(..., help="Asset id, e.g. asset-store-0142"),
    permission_id: str = typer.Argument(..., help="Permission or page id"),
) -> None:
    """Resolve one permission and show where the answer came from."""
    ws = demo_workspace()
    if user_id not in ws.users:
        typer.echo(typer.style(f"Unknown user: {user_id}", fg=typer.colors.RED))
        raise typer.Exit(code=1)
    if asset_id not in ws.assets:
        typer.echo(typer.style(f"Unknown asset: {asset_id}", fg=typer.colors.RED))
        raise typer.Exit(code=1)

    resolved = ws.effective_permissions(user_id, asset_id)
    source = next((p.source for p in resolved if p.permission_id == permission_id), None)
    allowed = ws.has_permission(user_id, asset_id, permission_id)
    via = f" (via {source})" if source else ""
    if allowed:
        typer.echo(typer.style(f"✅ ALLOWED{via}", fg=typer.colors.GREEN))
    else:
        typer.echo(typer.style(f"❌ DENIED{via}", fg=typer.colors.RED))


@demo_app.command("pages")
def pages(
    user_id: str = typer.Argument(..., help="User id"),
    asset_id: str = typer.Argument(..., help="Asset id"),
) -> None:
    """List navigation pages visible to a user at an asset."""
    ws = demo_workspace()
    visible = ws.visible_pages(user_id, asset_id)
    if not visible:
        typer.echo("No pages visible.")
        return
    for page_id in visible:
        typer.echo(f"  {page_id}")
