"""`workforce-admin` command-line entry point.

Usage:
    workforce-admin version
    workforce-admin config check
    workforce-admin config show
    workforce-admin demo summary
    workforce-admin demo check-permission USER ASSET PERMISSION
    workforce-admin certs expiring --days 30
"""

from __future__ import annotations

import typer

from src.cli.certs import certs_app
from src.cli.demo import demo_app
from src.config import APP_VERSION, Settings, get_settings

app = typer.Typer(
    name="workforce-admin",
    help="Workforce Operations Console administration CLI",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Configuration management")
app.add_typer(config_app, name="config")
app.add_typer(demo_app, name="demo")
app.add_typer(certs_app, name="certs")

_SECRET_FIELDS = frozenset({"jwt_secret"})


def _mask_secret(value: str, visible_chars: int = 6) -> str:
    """``very-secret-key`` becomes ``very-s***``; short values are hidden entirely."""
    return value[:visible_chars] + "***" if len(value) > visible_chars else "***"


def _config_sections(settings: Settings) -> dict[str, list[tuple[str, str]]]:
    """Displayable (key, value) pairs grouped by settings section."""
    sections: dict[str, list[tuple[str, str]]] = {}
    for section, sub_settings in settings:
        pairs = sections.setdefault(section, [])
        for key, value in sub_settings:
            shown = str(value)
            if key in _SECRET_FIELDS and shown:
                shown = _mask_secret(shown)
            pairs.append((key, shown))
    return sections


@app.command()
def version() -> None:
    """Show application version."""
    typer.echo(f"Workforce Operations Console v{APP_VERSION}")


@config_app.command("check")
def config_check() -> None:
    """Validate settings; exits 1 when any check fails."""
    errors = get_settings().validate_required().errors
    if not errors:
        typer.echo(typer.style("✅ All configuration checks passed", fg=typer.colors.GREEN))
        return

    for err in errors:
        line = f"❌ {err.field}: {err.message}."
        if err.hint:
            line += f"  Hint: {err.hint}"
        typer.echo(typer.style(line, fg=typer.colors.RED))
    typer.echo(f"\n{len(errors)} error(s) found.")
    raise typer.Exit(code=1)


@config_app.command("show")
def config_show() -> None:
    """Print effective settings by section, with secrets masked."""
    sections = _config_sections(get_settings())
    for index, (section, pairs) in enumerate(sections.items()):
        if index:
            typer.echo("")
        typer.echo(typer.style(f"[{section}]", fg=typer.colors.CYAN, bold=True))
        for key, value in pairs:
            typer.echo(f"  {key} = {value}")


if __name__ == "__main__":
    app()
