"""
Wallet ledger.

An account's `wallet_balance` is a cached projection: the sum of the amounts
of its completed transactions. Every write that can change that sum runs in
the same database transaction as the balance write-back, so the cache cannot
drift from the ledger.
"""
import logging
import threading
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import connection, transaction
from django.db.models import F, Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound

from core.exceptions import InsufficientBalance, StateConflict
from .models import PaymentMethod, Transaction

User = get_user_model()

logger = logging.getLogger(__name__)


def get_balance(user):
    total = Transaction.objects.filter(user=user, status='completed').aggregate(total=Sum('amount'))['total']
    return total or Decimal('0')


def sync_balance(user):
    """Recompute the cached balance from the ledger and write it back."""
    balance = get_balance(user)
    User.objects.filter(pk=user.pk).update(wallet_balance=balance)
    user.wallet_balance = balance
    return balance


def record_entry(user, type, amount, description, job=None, status='pending',
                 currency=None, payment_method=None, metadata=None):
    with transaction.atomic():
        entry = Transaction.objects.create(
            user=user,
            type=type,
            amount=Decimal(str(amount)),
            currency=currency or user.wallet_currency,
            description=description,
            job=job,
            payment_method=payment_method,
            status=status,
            metadata=metadata or {},
            processed_at=timezone.now() if status == 'completed' else None,
        )
        sync_balance(user)
    logger.info(f"Ledger entry {entry.reference} ({type} {entry.amount}) recorded for user {user.id} as {status}")
    return entry


def mark_completed(entry):
    """Settle an entry. Re-running it on a completed entry only re-sums the balance."""
    with transaction.atomic():
        entry = Transaction.objects.select_for_update().get(pk=entry.pk)
        if entry.status not in ('pending', 'completed'):
            raise StateConflict(f"Transaction is {entry.status} and cannot be completed")
        if entry.status == 'pending':
            entry.status = 'completed'
            entry.processed_at = timezone.now()
            entry.save(update_fields=['status', 'processed_at', 'updated_at'])
        sync_balance(entry.user)
    logger.info(f"Ledger entry {entry.reference} completed")
    return entry


def mark_failed(entry, reason):
    with transaction.atomic():
        entry = Transaction.objects.select_for_update().get(pk=entry.pk)
        if entry.status != 'pending':
            raise StateConflict(f"Transaction is {entry.status} and cannot be failed")
        entry.status = 'failed'
        entry.failed_at = timezone.now()
        entry.failure_reason = reason
        entry.save(update_fields=['status', 'failed_at', 'failure_reason', 'updated_at'])
    logger.warning(f"Ledger entry {entry.reference} failed: {reason}")
    return entry


def complete_job_payment(job):
    """Pay the selected worker for a job that has just been completed.

    Must run inside the caller's transaction so the job status change and
    the payout commit together.
    """
    worker = job.selected_worker
    amount = job.pay_amount
    entry = record_entry(
        worker,
        'earned',
        amount,
        f"{job.title} - {job.company_name}",
        job=job,
        status='completed',
        currency=job.pay_currency,
    )
    job.payment_status = 'paid'
    job.paid_at = timezone.now()
    job.payment_amount = amount
    job.payment_transaction = entry
    job.save(update_fields=['payment_status', 'paid_at', 'payment_amount', 'payment_transaction', 'updated_at'])

    User.objects.filter(pk=worker.pk).update(
        completed_jobs=F('completed_jobs') + 1,
        total_earnings=F('total_earnings') + amount,
    )
    worker.refresh_from_db(fields=['completed_jobs', 'total_earnings', 'wallet_balance'])
    return entry


def pending_withdrawals(user):
    """Total still on hold for unsettled withdrawals, as a positive amount."""
    total = Transaction.objects.filter(
        user=user, type='withdrawal', status='pending'
    ).aggregate(total=Sum('amount'))['total']
    return -(total or Decimal('0'))


def request_withdrawal(user, amount, payment_method_id):
    amount = Decimal(str(amount))
    with transaction.atomic():
        # Row lock serializes withdrawals from the same wallet
        balance = User.objects.select_for_update().values_list('wallet_balance', flat=True).get(pk=user.pk)
        available = balance - pending_withdrawals(user)
        if available < amount:
            logger.warning(f"Withdrawal of {amount} refused for user {user.id}: available {available}")
            raise InsufficientBalance()
        try:
            method = PaymentMethod.objects.get(pk=payment_method_id, user=user)
        except (PaymentMethod.DoesNotExist, ValueError, TypeError):
            raise NotFound('Payment method not found')

        entry = record_entry(
            user,
            'withdrawal',
            -amount,
            f"Withdrawal to {method.name}",
            status='pending',
            payment_method=method,
        )
        schedule_settlement(entry)
    return entry


def settle_withdrawal(entry):
    # Processor integration is stubbed; settlement always goes through
    try:
        return mark_completed(entry)
    except StateConflict:
        raise
    except Exception as e:
        logger.exception(f"Withdrawal {entry.reference} settlement error: {e}")
        return mark_failed(entry, 'Processing failed')


def _settle_in_background(entry_id):
    try:
        entry = Transaction.objects.get(pk=entry_id)
        if entry.status == 'pending':
            settle_withdrawal(entry)
    except Exception as e:
        logger.exception(f"Background settlement of transaction {entry_id} crashed: {e}")
    finally:
        connection.close()


def schedule_settlement(entry):
    """Settle a pending withdrawal shortly after the request commits.

    The timer lives in this process only; `manage.py settle_withdrawals`
    sweeps up anything a restart leaves pending.
    """
    if not settings.WITHDRAWAL_AUTO_SETTLE:
        return

    def start():
        timer = threading.Timer(settings.WITHDRAWAL_SETTLEMENT_DELAY, _settle_in_background, args=[entry.pk])
        timer.daemon = True
        timer.start()

    transaction.on_commit(start)


def settle_stale_withdrawals(now=None):
    """Recovery sweep for withdrawals left pending. Returns (settled, failed)."""
    now = now or timezone.now()
    settle_before = now - timedelta(seconds=settings.WITHDRAWAL_SETTLEMENT_DELAY)
    fail_before = now - timedelta(hours=settings.WITHDRAWAL_SETTLEMENT_TIMEOUT_HOURS)
    pending = Transaction.objects.filter(type='withdrawal', status='pending', created_at__lte=settle_before)

    settled, failed = 0, 0
    for entry in pending.order_by('created_at'):
        try:
            if entry.created_at <= fail_before:
                mark_failed(entry, 'Settlement timed out')
                failed += 1
            else:
                settle_withdrawal(entry)
                settled += 1
        except StateConflict as e:
            # Settled by the background timer after the sweep read it
            logger.info(f"Sweep skipped ledger entry {entry.reference}: {e}")
    return settled, failed
