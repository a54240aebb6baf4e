"""CLI commands for certification expirations.

Usage:
    workforce-admin certs expiring [--days N]
    workforce-admin certs check [--days N]
"""

from __future__ import annotations

import typer

from src.cli.demo import demo_workspace
from src.config import get_settings
from src.university.expirations import ExpiryAction, find_expiring

certs_app = typer.Typer(help="Certification expirations")

_DAYS_HELP = "Window in days (default: WORKFORCE_CERT_EXPIRY_WINDOW_DAYS)"


def _window(days: int | None) -> int:
    return get_settings().workforce.cert_expiry_window_days if days is None else days


@certs_app.command("expiring")
def expiring(days: int | None = typer.Option(None, "--days", "-d", help=_DAYS_HELP)) -> None:
    """List certifications expiring within the window."""
    ws = demo_workspace()
    window = _window(days)
    certs = find_expiring(ws.certifications, ws.now(), window)

    typer.echo(typer.style(f"Certifications expiring within {window} day(s)", bold=True))
    typer.echo("-" * 60)
    if not certs:
        typer.echo("  none")
        return
    for cert in certs:
        user = ws.users.get(cert.user_id)
        course = ws.courses.get(cert.course_id)
        expires = cert.expiration_date.date().isoformat() if cert.expiration_date else "-"
        typer.echo(
            f"  {expires}  {user.display_name if user else cert.user_id:<20} "
            f"{course.title if course else cert.course_id}"
        )


@certs_app.command("check")
def check(days: int | None = typer.Option(None, "--days", "-d", help=_DAYS_HELP)) -> None:
    """Open recertification enrollments for expiring certifications."""
    ws = demo_workspace()
    report = ws.check_certification_expirations(_window(days))

    for notice in report.notices:
        label = notice.course_title or notice.certification.course_id
        if notice.action == ExpiryAction.ENROLLED:
            typer.echo(
                typer.style(
                    f"✅ {notice.user_email}: re-enrolled in {label}", fg=typer.colors.GREEN
                )
            )
        else:
            typer.echo(f"  {notice.user_email}: {label} ({notice.action})")
    typer.echo(f"\n{report.enrolled_count} re-enrollment(s) created.")
