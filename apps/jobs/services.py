"""
Job lifecycle.

    active ──accept──> in_progress ──complete──> completed
      │                     │
      └──────cancel─────────┴──> cancelled

Applications move pending -> accepted | rejected | withdrawn. Accepting
one application does not touch the others; they go inert once the job
leaves `active`. Status-changing writes are conditional updates
(`WHERE status = <expected>`), so of two racing requests only one wins and
the other gets a StateConflict.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from apps.notifications.utils import notify
from apps.payments import ledger
from core.exceptions import StateConflict
from .models import Job, JobApplication

User = get_user_model()

logger = logging.getLogger(__name__)


def get_job(job_id, for_update=False):
    queryset = Job.objects.select_for_update() if for_update else Job.objects.all()
    try:
        return queryset.get(pk=job_id)
    except (Job.DoesNotExist, ValueError, TypeError):
        raise NotFound('Job not found')


def get_application(job, application_id):
    try:
        return job.applications.get(pk=application_id)
    except (JobApplication.DoesNotExist, ValueError, TypeError):
        raise NotFound('Application not found')


def has_live_application(job, user):
    return job.applications.filter(worker=user).exclude(status='withdrawn').exists()


def can_apply(job, user):
    if not job.is_open:
        return False
    if job.employer_id == user.pk:
        return False
    return not has_live_application(job, user)


def apply(job, worker, message='', proposed_pay=None):
    with transaction.atomic():
        # Row lock serializes concurrent applications to the same job
        job = get_job(job.pk, for_update=True)
        if not can_apply(job, worker):
            logger.warning(f"User {worker.id} refused application to job {job.id} (status {job.status})")
            raise StateConflict('Cannot apply for this job')
        application = JobApplication.objects.create(
            job=job, worker=worker, message=message or '', proposed_pay=proposed_pay
        )
        job.refresh_applications_count()

    logger.info(f"User {worker.id} applied to job {job.id} (application {application.id})")
    notify(
        job.employer, 'new_application', 'New application',
        f"{worker.full_name} applied to {job.title}",
        job_id=job.id, application_id=application.id
    )
    return application


def accept_application(job, application, actor):
    if job.employer_id != actor.pk:
        raise PermissionDenied('Only job owner can accept applications')
    if job.status != 'active':
        raise StateConflict('Cannot accept application for inactive job')
    if application.status != 'pending':
        raise StateConflict('Only pending applications can be accepted')

    now = timezone.now()
    with transaction.atomic():
        claimed = Job.objects.filter(pk=job.pk, status='active').update(
            status='in_progress', selected_worker=application.worker_id, started_at=now, updated_at=now
        )
        if not claimed:
            raise StateConflict('Cannot accept application for inactive job')
        updated = JobApplication.objects.filter(pk=application.pk, status='pending').update(
            status='accepted', responded_at=now
        )
        if not updated:
            raise StateConflict('Only pending applications can be accepted')

    job.refresh_from_db()
    application.refresh_from_db()
    logger.info(f"Job {job.id} accepted application {application.id}; worker {application.worker_id} selected")
    notify(
        application.worker, 'application_accepted', 'Application accepted',
        f"Your application for {job.title} was accepted",
        job_id=job.id, application_id=application.id
    )
    return job, application


def reject_application(job, application, actor):
    if job.employer_id != actor.pk:
        raise PermissionDenied('Only job owner can reject applications')
    if job.status != 'active':
        raise StateConflict('Cannot reject application for inactive job')
    updated = JobApplication.objects.filter(pk=application.pk, status='pending').update(
        status='rejected', responded_at=timezone.now()
    )
    if not updated:
        raise StateConflict('Only pending applications can be rejected')

    application.refresh_from_db()
    logger.info(f"Job {job.id} rejected application {application.id}")
    notify(
        application.worker, 'application_rejected', 'Application rejected',
        f"Your application for {job.title} was not accepted",
        job_id=job.id, application_id=application.id
    )
    return application


def withdraw_application(job, application, actor):
    if application.worker_id != actor.pk:
        raise PermissionDenied('Only applicant can withdraw their application')
    updated = JobApplication.objects.filter(pk=application.pk, status='pending').update(
        status='withdrawn', responded_at=timezone.now()
    )
    if not updated:
        raise StateConflict('Cannot withdraw application that is not pending')
    application.refresh_from_db()
    logger.info(f"User {actor.id} withdrew application {application.id} from job {job.id}")
    return application


def remove_application(job, actor):
    """Delete the caller's pending application outright."""
    with transaction.atomic():
        job = get_job(job.pk, for_update=True)
        applications = job.applications.filter(worker=actor).exclude(status='withdrawn')
        application = applications.first()
        if application is None:
            raise NotFound('Application not found')
        if application.status != 'pending':
            raise StateConflict('Cannot withdraw application that is not pending')
        application.delete()
        job.refresh_applications_count()
    logger.info(f"User {actor.id} removed their application from job {job.id}")
    return job


def complete_job(job, actor):
    """Close out an in-progress job and pay the selected worker."""
    if job.employer_id != actor.pk:
        raise PermissionDenied('Only job owner can complete the job')
    if job.status != 'in_progress':
        raise StateConflict('Job must be in progress to complete')

    now = timezone.now()
    with transaction.atomic():
        claimed = Job.objects.filter(pk=job.pk, status='in_progress').update(
            status='completed', completed_at=now, updated_at=now
        )
        if not claimed:
            raise StateConflict('Job must be in progress to complete')
        job.refresh_from_db()
        entry = ledger.complete_job_payment(job)

    logger.info(f"Job {job.id} completed; paid {entry.amount} to worker {job.selected_worker_id}")
    notify(
        job.selected_worker, 'job_completed', 'Job completed',
        f"{job.title} was marked complete and {entry.formatted_amount} was added to your wallet",
        job_id=job.id, transaction_id=entry.id
    )
    return job, entry


def cancel_job(job, actor):
    if job.employer_id != actor.pk:
        raise PermissionDenied('Only job owner can cancel the job')
    worker = job.selected_worker
    now = timezone.now()
    cancelled = Job.objects.filter(pk=job.pk, status__in=['active', 'in_progress']).update(
        status='cancelled', selected_worker=None, updated_at=now
    )
    if not cancelled:
        raise StateConflict(f"Cannot cancel a job that is {job.status}")
    job.refresh_from_db()
    logger.info(f"Job {job.id} cancelled by employer {actor.id}")
    if worker is not None:
        notify(
            worker, 'job_cancelled', 'Job cancelled',
            f"{job.title} was cancelled by the employer",
            job_id=job.id
        )
    return job


def _rating_side(job, actor):
    if job.employer_id == actor.pk:
        return 'employer'
    if job.selected_worker_id is not None and job.selected_worker_id == actor.pk:
        return 'worker'
    raise PermissionDenied('Not authorized to rate this job')


def _rated_user(job, side):
    # The employer's rating is about the worker and vice versa
    return job.selected_worker if side == 'employer' else job.employer


def submit_rating(job, actor, rating, review=''):
    if job.status != 'completed':
        raise StateConflict('Can only rate completed jobs')
    side = _rating_side(job, actor)
    now = timezone.now()
    updated = Job.objects.filter(pk=job.pk, **{f'{side}_rating__isnull': True}).update(
        updated_at=now,
        **{f'{side}_rating': rating, f'{side}_review': review or '', f'{side}_rated_at': now}
    )
    if not updated:
        raise StateConflict('You have already rated this job')
    job.refresh_from_db()
    rated = _rated_user(job, side)
    recompute_rating_stats(rated)
    logger.info(f"Job {job.id} rated {rating} by {side} {actor.id}")
    notify(
        rated, 'new_rating', 'New rating',
        f"You received a {rating}-star rating for {job.title}",
        job_id=job.id
    )
    return job


def update_rating(job, actor, rating, review=None):
    side = _rating_side(job, actor)
    if getattr(job, f'{side}_rating') is None:
        raise StateConflict('No existing rating to update')
    setattr(job, f'{side}_rating', rating)
    if review is not None:
        setattr(job, f'{side}_review', review)
    setattr(job, f'{side}_rated_at', timezone.now())
    job.save(update_fields=[f'{side}_rating', f'{side}_review', f'{side}_rated_at', 'updated_at'])
    recompute_rating_stats(_rated_user(job, side))
    logger.info(f"Job {job.id} rating by {side} {actor.id} changed to {rating}")
    return job


def delete_rating(job, actor):
    side = _rating_side(job, actor)
    if getattr(job, f'{side}_rating') is None:
        raise StateConflict('No rating to delete')
    setattr(job, f'{side}_rating', None)
    setattr(job, f'{side}_review', '')
    setattr(job, f'{side}_rated_at', None)
    job.save(update_fields=[f'{side}_rating', f'{side}_review', f'{side}_rated_at', 'updated_at'])
    recompute_rating_stats(_rated_user(job, side))
    logger.info(f"Job {job.id} rating by {side} {actor.id} deleted")
    return job


def ratings_received(user):
    """Every rating `user` has received, newest first.

    Employers rate the worker they selected; workers rate the employer.
    """
    as_worker = Job.objects.filter(selected_worker=user, employer_rating__isnull=False).select_related('employer')
    as_employer = Job.objects.filter(employer=user, worker_rating__isnull=False).select_related('selected_worker')
    received = [
        {'job': job, 'rating': job.employer_rating, 'review': job.employer_review,
         'rated_at': job.employer_rated_at, 'rated_by': job.employer}
        for job in as_worker
    ]
    received += [
        {'job': job, 'rating': job.worker_rating, 'review': job.worker_review,
         'rated_at': job.worker_rated_at, 'rated_by': job.selected_worker}
        for job in as_employer
    ]
    received.sort(key=lambda r: r['rated_at'], reverse=True)
    return received


def recompute_rating_stats(user):
    """Full re-average over every job where `user` was rated."""
    if user is None:
        return
    ratings = [r['rating'] for r in ratings_received(user)]
    total = len(ratings)
    average = round(sum(ratings) / total, 1) if total else 0
    User.objects.filter(pk=user.pk).update(average_rating=average, total_reviews=total)
    user.average_rating = average
    user.total_reviews = total


def active_jobs_for(user):
    return Job.objects.filter(
        Q(employer=user) | Q(selected_worker=user),
        status__in=['active', 'in_progress'],
    )
