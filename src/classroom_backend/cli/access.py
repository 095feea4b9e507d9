import click

from classroom_backend.cli.common import open_session, principal_for
from classroom_backend.interface.classes import ScopedClassList
from classroom_backend.interface.enums import AccessLevel, ResourceType
from classroom_backend.interface.resources import ResourceDescriptor
from classroom_backend.permissions.core import is_authorized
from classroom_backend.permissions.scoping import scoped_class_ids, scoped_class_subject_pairs


@click.command()
@click.option("--user-id", "user_id", required=True)
@click.option("--type", "resource_type", type=click.Choice([t.value for t in ResourceType]), required=True)
@click.option("--class-id", "class_id", default=None)
@click.option("--subject-id", "subject_id", default=None)
@click.option("--owner-id", "owner_id", default=None)
@click.option("--access-level", "access_level", type=click.Choice([a.value for a in AccessLevel]), default=None)
def check(user_id, resource_type, class_id, subject_id, owner_id, access_level):
  """Print the access decision for a user on a described resource."""

  db = open_session()
  try:
    principal = principal_for(db, user_id)
    resource = ResourceDescriptor(
      resource_type=ResourceType(resource_type),
      owner_id=owner_id,
      class_id=class_id,
      subject_id=subject_id,
      access_level=AccessLevel(access_level) if access_level else None,
    )
    decision = is_authorized(principal, resource, db)
  finally:
    db.close()

  if decision.allow:
    click.echo(f"{click.style('ALLOW', fg='green')} ({decision.detail})")
  else:
    click.echo(f"{click.style('DENY', fg='red')} ({decision.detail})")
    raise click.exceptions.Exit(1)


@click.command()
@click.option("--user-id", "user_id", required=True)
def scope(user_id):
  """List the classes, and subjects within them, a user is scoped to."""

  db = open_session()
  try:
    principal = principal_for(db, user_id)
    class_ids = scoped_class_ids(principal, db)
    pairs = scoped_class_subject_pairs(principal, db)
  finally:
    db.close()

  scoped = [
    ScopedClassList(class_id=class_id, subject_ids=sorted(s for c, s in pairs if c == class_id))
    for class_id in sorted(class_ids)
  ]
  if not scoped:
    click.echo("No classes in scope")
  for entry in scoped:
    click.echo(f"{entry.class_id}  {', '.join(entry.subject_ids) or '-'}")


@click.group()
def access():
    pass

access.add_command(check,"check")
access.add_command(scope,"scope")
