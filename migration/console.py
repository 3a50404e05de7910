"""
Colored, severity-tagged progress messages for operators
"""

import click


def info(message: str) -> None:
    click.secho(f"ℹ️  {message}", fg="blue")


def success(message: str) -> None:
    click.secho(f"✅ {message}", fg="green")


def warning(message: str) -> None:
    click.secho(f"⚠️  {message}", fg="yellow")


def error(message: str) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)


def detail(message: str) -> None:
    click.echo(f"   {message}")


def banner(title: str) -> None:
    click.secho(title, fg="cyan", bold=True)
    click.secho("=" * len(title), fg="cyan")
