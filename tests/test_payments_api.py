"""
Tests for the wallet, transaction history, withdrawal and payment
method endpoints.
"""
from decimal import Decimal

import pytest

from apps.jobs import services
from apps.payments import ledger
from apps.payments.models import PaymentMethod, Transaction


def fund(user, amount):
    ledger.record_entry(user, 'bonus', Decimal(amount), 'Welcome bonus', status='completed')


@pytest.mark.django_db
class TestWallet:

    def test_wallet(self, client_for, worker, payment_method):
        fund(worker, '42.50')

        body = client_for(worker).get('/api/payments/wallet/').json()['data']

        assert body['wallet'] == {'balance': 42.5, 'currency': 'USD'}
        assert [m['id'] for m in body['payment_methods']] == [payment_method.id]

    def test_wallet_requires_auth(self, api_client, db):
        response = api_client.get('/api/payments/wallet/')

        assert response.status_code == 401
        assert response.json()['success'] is False

    def test_transactions_filtered(self, client_for, worker, payment_method):
        fund(worker, '100')
        ledger.request_withdrawal(worker, Decimal('20'), payment_method.id)

        client = client_for(worker)
        everything = client.get('/api/payments/transactions/').json()['data']
        withdrawals = client.get('/api/payments/transactions/', {'type': 'withdrawal'}).json()['data']

        assert everything['pagination']['total'] == 2
        assert len(withdrawals['transactions']) == 1
        entry = withdrawals['transactions'][0]
        assert entry['amount'] == -20
        assert entry['formatted_amount'] == '-USD20.00'
        assert entry['is_positive'] is False
        assert entry['status'] == 'pending'


@pytest.mark.django_db
class TestWithdraw:

    def test_withdraw_and_settle(self, client_for, worker, payment_method):
        fund(worker, '250')

        response = client_for(worker).post(
            '/api/payments/withdraw/', {'amount': 50, 'payment_method_id': payment_method.id}, format='json'
        )

        assert response.status_code == 200
        transaction = response.json()['data']['transaction']
        assert transaction['amount'] == -50
        assert transaction['status'] == 'pending'

        ledger.settle_withdrawal(Transaction.objects.get(pk=transaction['id']))

        worker.refresh_from_db()
        assert worker.wallet_balance == Decimal('200.00')
        assert Transaction.objects.get(pk=transaction['id']).status == 'completed'

    def test_insufficient_balance(self, client_for, worker, payment_method):
        fund(worker, '250')

        response = client_for(worker).post(
            '/api/payments/withdraw/', {'amount': 300, 'payment_method_id': payment_method.id}, format='json'
        )

        assert response.status_code == 400
        assert response.json() == {'success': False, 'error': 'Insufficient balance', 'code': 'insufficient_balance'}
        assert not Transaction.objects.filter(user=worker, type='withdrawal').exists()

    def test_missing_payment_method(self, client_for, worker):
        fund(worker, '250')

        response = client_for(worker).post(
            '/api/payments/withdraw/', {'amount': 10, 'payment_method_id': 987654}, format='json'
        )

        assert response.status_code == 404
        assert response.json()['error'] == 'Payment method not found'

    def test_amount_below_minimum(self, client_for, worker, payment_method):
        response = client_for(worker).post(
            '/api/payments/withdraw/', {'amount': 0.5, 'payment_method_id': payment_method.id}, format='json'
        )

        assert response.status_code == 400
        assert response.json()['errors'][0] == {'field': 'amount', 'message': 'Amount must be at least 1'}


@pytest.mark.django_db
class TestPaymentMethods:

    def add(self, client, **overrides):
        payload = {'type': 'card', 'name': 'Visa', 'last4': '4242'}
        payload.update(overrides)
        return client.post('/api/payments/add-payment-method/', payload, format='json')

    def test_first_method_becomes_default(self, client_for, worker):
        response = self.add(client_for(worker))

        assert response.status_code == 200
        methods = response.json()['data']['payment_methods']
        assert len(methods) == 1
        assert methods[0]['is_default'] is True

    def test_new_default_unsets_previous(self, client_for, worker):
        client = client_for(worker)
        self.add(client)
        self.add(client, type='bank', name='Checking', last4='0001', is_default=True)

        defaults = PaymentMethod.objects.filter(user=worker, is_default=True)
        assert [m.name for m in defaults] == ['Checking']

    def test_last4_must_be_digits(self, client_for, worker):
        response = self.add(client_for(worker), last4='42a2')

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'last4'

    def test_update_default(self, client_for, worker):
        client = client_for(worker)
        self.add(client)
        self.add(client, name='Mastercard', last4='5555')
        second = PaymentMethod.objects.get(user=worker, name='Mastercard')

        response = client.put(f'/api/payments/payment-method/{second.id}/', {'is_default': True}, format='json')

        assert response.status_code == 200
        assert PaymentMethod.objects.get(user=worker, is_default=True).id == second.id

    def test_cannot_delete_default_while_others_exist(self, client_for, worker):
        client = client_for(worker)
        self.add(client)
        self.add(client, name='Mastercard', last4='5555')
        default = PaymentMethod.objects.get(user=worker, is_default=True)

        response = client.delete(f'/api/payments/payment-method/{default.id}/')

        assert response.status_code == 400
        assert PaymentMethod.objects.filter(pk=default.pk).exists()

    def test_delete_non_default(self, client_for, worker):
        client = client_for(worker)
        self.add(client)
        self.add(client, name='Mastercard', last4='5555')
        other = PaymentMethod.objects.get(user=worker, is_default=False)

        response = client.delete(f'/api/payments/payment-method/{other.id}/')

        assert response.status_code == 200
        assert len(response.json()['data']['payment_methods']) == 1

    def test_other_users_method_is_not_found(self, client_for, worker, other_worker, payment_method):
        response = client_for(other_worker).delete(f'/api/payments/payment-method/{payment_method.id}/')
        assert response.status_code == 404


@pytest.mark.django_db
class TestCompleteJobEndpoint:

    def test_requires_in_progress(self, client_for, job, employer):
        response = client_for(employer).post(f'/api/payments/complete-job/{job.id}/')

        assert response.status_code == 400
        assert response.json()['error'] == 'Job must be in progress to complete'

    def test_only_owner(self, client_for, job, worker, employer):
        application = services.apply(job, worker)
        services.accept_application(job, application, employer)

        response = client_for(worker).post(f'/api/payments/complete-job/{job.id}/')

        assert response.status_code == 403
        assert not Transaction.objects.exists()
