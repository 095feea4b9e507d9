import click

from classroom_backend.cli.common import handle_exceptions, open_session, principal_for
from classroom_backend.interface.enums import RequestStatus, Term
from classroom_backend.repositories.classes import ClassRepository
from classroom_backend.services.enrollment_workflow import EnrollmentWorkflow


@click.command()
@click.option("--class-id", "class_id", default=None, help="Only requests for this class")
@click.option("--kind", type=click.Choice(["all", "teacher", "student"]), default="all")
def list_requests(class_id, kind):

  db = open_session()
  try:
    classes = ClassRepository(db)

    if kind in ("all", "teacher"):
      for entry in classes.pending_teacher_requests(class_id):
        click.echo(f"teacher  {entry.teacher_id}  class={entry.class_id}  subject={entry.subject_id}  requested={entry.requested_at}")

    if kind in ("all", "student"):
      for entry in classes.pending_student_requests(class_id):
        click.echo(f"student  {entry.student_id}  class={entry.class_id}  requested={entry.requested_at}")
  finally:
    db.close()


def _resolve(status: RequestStatus, admin_id, class_id, teacher_id, student_id, subject_id,
             academic_year, term, reason):

  if bool(teacher_id) == bool(student_id):
    raise click.UsageError("pass exactly one of --teacher-id or --student-id")
  if teacher_id and not subject_id:
    raise click.UsageError("--subject-id is required for teacher requests")

  db = open_session()
  try:
    principal = principal_for(db, admin_id)
    workflow = EnrollmentWorkflow(db)

    if teacher_id:
      entry = workflow.resolve_teacher_request(principal, class_id, subject_id, teacher_id, status, reason)
      click.echo(f"Teacher request {teacher_id} for subject {subject_id}: {click.style(entry.status.value, fg='green')}")
    else:
      entry = workflow.resolve_student_request(
        principal, class_id, student_id, status, reason,
        academic_year=academic_year, term=Term(term) if term else None,
      )
      click.echo(f"Student request {student_id}: {click.style(entry.status.value, fg='green')}")
  finally:
    db.close()


def _resolve_options(func):
  for option in reversed([
    click.option("--admin-id", "admin_id", required=True),
    click.option("--class-id", "class_id", required=True),
    click.option("--teacher-id", "teacher_id", default=None),
    click.option("--student-id", "student_id", default=None),
    click.option("--subject-id", "subject_id", default=None),
    click.option("--year", "academic_year", default=None, help="Academic year for auto-enrollment"),
    click.option("--term", "term", type=click.Choice([t.value for t in Term]), default=None),
    click.option("--reason", "reason", default=None),
  ]):
    func = option(func)
  return func


@click.command()
@_resolve_options
@handle_exceptions
def approve(admin_id, class_id, teacher_id, student_id, subject_id, academic_year, term, reason):
  _resolve(RequestStatus.approved, admin_id, class_id, teacher_id, student_id, subject_id, academic_year, term, reason)


@click.command()
@_resolve_options
@handle_exceptions
def reject(admin_id, class_id, teacher_id, student_id, subject_id, academic_year, term, reason):
  _resolve(RequestStatus.rejected, admin_id, class_id, teacher_id, student_id, subject_id, academic_year, term, reason)


@click.group()
def requests():
    pass

requests.add_command(list_requests,"list")
requests.add_command(approve,"approve")
requests.add_command(reject,"reject")
