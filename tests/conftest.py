import datetime
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from apps.jobs.models import Job
from apps.payments.models import PaymentMethod
from apps.users.models import User


@pytest.fixture(autouse=True)
def manual_settlement(settings):
    """Withdrawals stay pending until a test settles them itself."""
    settings.WITHDRAWAL_AUTO_SETTLE = False


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make_user(role='worker', is_verified=True, **fields):
        counter['n'] += 1
        email = fields.pop('email', f"{role}{counter['n']}@example.com")
        user = User(
            email=email,
            username=email,
            first_name=fields.pop('first_name', role.title()),
            last_name=fields.pop('last_name', str(counter['n'])),
            role=role,
            is_verified=is_verified,
            **fields,
        )
        user.set_password('secret123')
        user.save()
        return user

    return _make_user


@pytest.fixture
def employer(make_user):
    return make_user(role='employer', company_name='Acme Events', business_verified=True)


@pytest.fixture
def worker(make_user):
    return make_user(role='worker')


@pytest.fixture
def other_worker(make_user):
    return make_user(role='worker')


@pytest.fixture
def make_job(db):
    def _make_job(employer, **fields):
        values = {
            'title': 'Event setup crew',
            'description': 'Help set up chairs and staging for an evening event downtown.',
            'category': 'Events',
            'company_name': employer.company_name or employer.full_name,
            'pay_amount': Decimal('25.00'),
            'pay_type': 'hourly',
            'address': '1 Market St',
            'city': 'San Francisco',
            'latitude': 37.7749,
            'longitude': -122.4194,
            'date': timezone.now().date() + datetime.timedelta(days=3),
            'time_start': '09:00',
            'time_end': '17:00',
            'duration': Decimal('8'),
        }
        values.update(fields)
        return Job.objects.create(employer=employer, **values)

    return _make_job


@pytest.fixture
def job(make_job, employer):
    return make_job(employer)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(db):
    def _client_for(user):
        client = APIClient()
        token, _ = Token.objects.get_or_create(user=user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.key}")
        return client

    return _client_for


@pytest.fixture
def payment_method(worker):
    return PaymentMethod.objects.create(user=worker, type='card', name='Visa ending 4242', last4='4242', is_default=True)
