import click

from app.db import SessionLocal
from app.logging import configure_logging


@click.group()
def cli():
    """Family records maintenance commands."""
    configure_logging()


@cli.command("birthdays-notify")
@click.option("--days", default=1, show_default=True, type=int,
              help="Number of days ahead to check for birthdays.")
def birthdays_notify(days):
    """Send notifications for upcoming birthdays."""
    from app.tasks.birthdays import _notify

    if days < 0:
        raise click.BadParameter("must be zero or positive", param_hint="--days")
    db = SessionLocal()
    try:
        result = _notify(db, days)
    finally:
        db.close()
    click.echo(f"Target date: {result['target_date'].isoformat()}")
    click.echo(f"Birthdays found: {result['people']}")
    click.echo(f"Notifications created: {result['notifications']}")
    click.echo(f"Devices pushed: {result['tokens']}")


@cli.command("make-admin")
@click.argument("email")
def make_admin(email):
    """Promote the user with EMAIL to admin and approve them."""
    from app.services.admin import admin_users

    db = SessionLocal()
    try:
        user = admin_users.find_by_email(db, email)
        if user is None:
            raise click.ClickException(f"No user with email {email}")
        if user.is_admin:
            click.echo(f"{user.email} is already an admin.")
            return
        admin_users.make_admin(db, None, str(user.id))
        click.echo(f"{user.email} is now an admin.")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
