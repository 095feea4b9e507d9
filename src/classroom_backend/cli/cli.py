import click
import logging

from classroom_backend.database import get_engine
from classroom_backend.model import Base
from classroom_backend.settings import settings

from .requests import requests
from .access import access


@click.command()
def init_db():
  """Create all tables in the configured database."""
  Base.metadata.create_all(bind=get_engine())
  click.echo("Database initialized")


@click.group()
def cli():
    logging.basicConfig(level=settings.LOG_LEVEL)

cli.add_command(init_db,"init-db")
cli.add_command(requests,"requests")
cli.add_command(access,"access")

if __name__ == '__main__':
    cli()
