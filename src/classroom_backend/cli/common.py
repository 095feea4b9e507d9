import click
from functools import wraps
from fastapi import HTTPException

from classroom_backend.database import get_session
from classroom_backend.permissions.principal import Principal
from classroom_backend.repositories.users import UserRepository


def handle_exceptions(func):
  @wraps(func)
  def wrapper(*args, **kwargs):
    try:
      return func(*args, **kwargs)
    except HTTPException as e:
      click.echo(f"[{click.style(str(e.status_code),fg='red')}] {e.detail}")
      raise click.exceptions.Exit(1)

  return wrapper


def open_session():
  return get_session()


def principal_for(db, user_id: str) -> Principal:
  user = UserRepository(db).get_user(user_id)
  if user is None:
    raise click.BadParameter(f"user {user_id} not found")
  return Principal.from_user(user)
