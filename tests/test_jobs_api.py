"""
Tests for the job endpoints: posting, listing with filters and geo search,
detail, update, delete and cancel.
"""
import datetime
from decimal import Decimal

import pytest
from django.core.management import call_command
from django.utils import timezone

from apps.jobs import services
from apps.jobs.models import Job
from apps.jobs.serializers import JobSerializer
from apps.jobs.utils import haversine_km, longitude_ranges
from apps.users.models import User

JOBS_URL = '/api/jobs/'


def job_payload(**overrides):
    payload = {
        'title': 'Weekend delivery driver',
        'description': 'Deliver grocery orders around the city on Saturday and Sunday.',
        'category': 'Delivery',
        'pay': {'amount': 22, 'type': 'hourly'},
        'location': {'address': '500 Howard St', 'city': 'San Francisco', 'coordinates': [-122.3969, 37.7880]},
        'date': '2030-05-04',
        'time': {'start': '08:00', 'end': '16:30'},
        'duration': 8.5,
        'skills': ['driving'],
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestCreateJob:

    def test_verified_user_can_post(self, client_for, employer):
        response = client_for(employer).post(JOBS_URL, job_payload(), format='json')

        assert response.status_code == 201
        body = response.json()
        assert body['success'] is True
        job = body['data']['job']
        assert job['status'] == 'active'
        assert job['pay']['amount'] == 22
        assert job['location']['coordinates'] == [-122.3969, 37.7880]
        assert job['time'] == {'start': '08:00', 'end': '16:30'}
        assert job['company_name'] == 'Acme Events'
        assert job['applications_count'] == 0

        stored = Job.objects.get(pk=job['id'])
        assert stored.longitude == pytest.approx(-122.3969)
        assert stored.latitude == pytest.approx(37.7880)
        assert stored.expires_at > timezone.now() + datetime.timedelta(days=29)
        employer.refresh_from_db()
        assert employer.total_jobs == 1

    def test_total_jobs_counts_from_stored_value(self, rf, employer):
        # Another request posted five jobs since this instance was loaded
        User.objects.filter(pk=employer.pk).update(total_jobs=5)
        request = rf.post(JOBS_URL)
        request.user = employer

        serializer = JobSerializer(data=job_payload(), context={'request': request})
        serializer.is_valid(raise_exception=True)
        serializer.save()

        employer.refresh_from_db()
        assert employer.total_jobs == 6

    def test_company_name_falls_back_to_full_name(self, client_for, make_user):
        poster = make_user(role='employer', first_name='Dana', last_name='Lee')

        response = client_for(poster).post(JOBS_URL, job_payload(), format='json')

        assert response.json()['data']['job']['company_name'] == 'Dana Lee'

    def test_unverified_user_is_forbidden(self, client_for, make_user):
        poster = make_user(role='employer', is_verified=False)

        response = client_for(poster).post(JOBS_URL, job_payload(), format='json')

        assert response.status_code == 403
        assert response.json()['error'] == 'Account verification required to post jobs'

    def test_anonymous_is_unauthorized(self, api_client, db):
        response = api_client.post(JOBS_URL, job_payload(), format='json')
        assert response.status_code == 401

    def test_validation_errors_are_listed(self, client_for, employer):
        payload = job_payload(
            title='Hi',
            pay={'amount': 0},
            time={'start': '25:00', 'end': '10:00'},
            duration=0.25,
        )

        response = client_for(employer).post(JOBS_URL, payload, format='json')

        assert response.status_code == 400
        body = response.json()
        assert body['success'] is False
        fields = {error['field'] for error in body['errors']}
        assert {'title', 'pay.amount', 'time.start', 'duration'} <= fields

    def test_bad_coordinates(self, client_for, employer):
        payload = job_payload(location={'address': 'x', 'city': 'y', 'coordinates': [1]})

        response = client_for(employer).post(JOBS_URL, payload, format='json')

        assert response.status_code == 400
        assert any(e['field'] == 'location.coordinates' for e in response.json()['errors'])


@pytest.mark.django_db
class TestListJobs:

    def test_lists_only_open_jobs(self, api_client, make_job, employer):
        open_job = make_job(employer)
        make_job(employer, status='cancelled')
        make_job(employer, expires_at=timezone.now() - datetime.timedelta(hours=1))

        response = api_client.get(JOBS_URL)

        assert response.status_code == 200
        ids = [job['id'] for job in response.json()['data']['jobs']]
        assert ids == [open_job.id]
        assert response.json()['data']['pagination']['total'] == 1

    def test_filters(self, api_client, make_job, employer):
        cheap = make_job(employer, pay_amount=Decimal('12'), category='Retail', city='Oakland')
        make_job(employer, pay_amount=Decimal('40'), category='Events')

        response = api_client.get(JOBS_URL, {'category': 'Retail', 'city': 'oak', 'max_pay': 20})

        ids = [job['id'] for job in response.json()['data']['jobs']]
        assert ids == [cheap.id]

    def test_search_matches_title_description_company(self, api_client, make_job, employer):
        match = make_job(employer, title='Barista for pop-up cafe')
        make_job(employer)

        response = api_client.get(JOBS_URL, {'search': 'barista'})

        assert [job['id'] for job in response.json()['data']['jobs']] == [match.id]

    def test_pay_sorting(self, api_client, make_job, employer):
        low = make_job(employer, pay_amount=Decimal('15'))
        high = make_job(employer, pay_amount=Decimal('45'))
        mid = make_job(employer, pay_amount=Decimal('30'))

        high_first = api_client.get(JOBS_URL, {'sort': 'pay_high'}).json()['data']['jobs']
        low_first = api_client.get(JOBS_URL, {'sort': 'pay_low'}).json()['data']['jobs']

        assert [job['id'] for job in high_first] == [high.id, mid.id, low.id]
        assert [job['id'] for job in low_first] == [low.id, mid.id, high.id]

    def test_distance_sort_without_point_falls_back_to_recent(self, api_client, make_job, employer):
        older = make_job(employer)
        newer = make_job(employer)
        Job.objects.filter(pk=older.pk).update(created_at=timezone.now() - datetime.timedelta(days=1))

        jobs = api_client.get(JOBS_URL, {'sort': 'distance'}).json()['data']['jobs']

        assert [job['id'] for job in jobs] == [newer.id, older.id]
        assert all(job['distance'] is None for job in jobs)

    def test_geo_search_nearest_first_within_radius(self, api_client, make_job, employer):
        # Around downtown San Francisco
        near = make_job(employer, latitude=37.7793, longitude=-122.4193)
        nearer = make_job(employer, latitude=37.7750, longitude=-122.4195)
        far = make_job(employer, latitude=37.8044, longitude=-122.2712)
        make_job(employer, latitude=34.0522, longitude=-118.2437)

        response = api_client.get(JOBS_URL, {'lat': 37.7749, 'lng': -122.4194, 'radius': 20, 'sort': 'distance'})

        jobs = response.json()['data']['jobs']
        assert [job['id'] for job in jobs] == [nearer.id, near.id, far.id]
        expected = round(haversine_km(37.7749, -122.4194, 37.8044, -122.2712), 1)
        assert jobs[2]['distance'] == expected

    def test_geo_search_across_date_line(self, api_client, make_job, employer):
        across = make_job(employer, latitude=0.0, longitude=-179.95)
        make_job(employer, latitude=0.0, longitude=-178.0)

        response = api_client.get(JOBS_URL, {'lat': 0, 'lng': 179.95, 'radius': 50})

        body = response.json()['data']
        assert body['pagination']['total'] == 1
        assert body['jobs'][0]['id'] == across.id
        assert body['jobs'][0]['distance'] == round(haversine_km(0, 179.95, 0, -179.95), 1)

    def test_longitude_ranges_wrap(self):
        assert longitude_ranges(-10, 10) == [(-10, 10)]
        assert longitude_ranges(179.5, 180.4) == [(179.5, 180.0), (-180.0, pytest.approx(-179.6))]
        assert longitude_ranges(-180.4, -179.5) == [(pytest.approx(179.6), 180.0), (-180.0, -179.5)]
        assert longitude_ranges(-200, 200) == [(-180.0, 180.0)]

    def test_geo_search_keeps_requested_sort(self, api_client, make_job, employer):
        cheap_near = make_job(employer, pay_amount=Decimal('15'), latitude=37.7750, longitude=-122.4195)
        rich_far = make_job(employer, pay_amount=Decimal('50'), latitude=37.8044, longitude=-122.2712)

        response = api_client.get(JOBS_URL, {'lat': 37.7749, 'lng': -122.4194, 'sort': 'pay_high'})

        assert [job['id'] for job in response.json()['data']['jobs']] == [rich_far.id, cheap_near.id]

    def test_invalid_query(self, api_client, db):
        response = api_client.get(JOBS_URL, {'sort': 'closest', 'radius': 500})

        assert response.status_code == 400
        fields = {error['field'] for error in response.json()['errors']}
        assert {'sort', 'radius'} <= fields

    def test_pagination(self, api_client, make_job, employer):
        for _ in range(5):
            make_job(employer)

        body = api_client.get(JOBS_URL, {'page': 2, 'limit': 2}).json()['data']

        assert len(body['jobs']) == 2
        assert body['pagination'] == {'page': 2, 'limit': 2, 'total': 5, 'pages': 3}

    def test_has_applied_flag(self, client_for, job, worker):
        services.apply(job, worker)

        jobs = client_for(worker).get(JOBS_URL).json()['data']['jobs']

        assert jobs[0]['has_applied'] is True


@pytest.mark.django_db
class TestJobDetail:

    def test_detail_counts_views(self, api_client, job):
        api_client.get(f'{JOBS_URL}{job.id}/')
        response = api_client.get(f'{JOBS_URL}{job.id}/')

        assert response.status_code == 200
        assert response.json()['data']['job']['views'] == 2

    def test_missing_job(self, api_client, db):
        response = api_client.get(f'{JOBS_URL}999999/')

        assert response.status_code == 404
        assert response.json() == {'success': False, 'error': 'Job not found', 'code': 'not_found'}

    def test_application_visibility(self, api_client, client_for, job, worker, other_worker, employer):
        services.apply(job, worker)
        services.apply(job, other_worker)
        url = f'{JOBS_URL}{job.id}/'

        as_employer = client_for(employer).get(url).json()['data']['job']['applications']
        as_worker = client_for(worker).get(url).json()['data']['job']['applications']
        as_anonymous = api_client.get(url).json()['data']['job']['applications']

        assert len(as_employer) == 2
        assert [a['worker']['id'] for a in as_worker] == [worker.id]
        assert as_anonymous == []

    def test_owner_can_update_active_job(self, client_for, job, employer):
        response = client_for(employer).put(
            f'{JOBS_URL}{job.id}/', {'title': 'Evening event crew', 'pay': {'amount': 28}}, format='json'
        )

        assert response.status_code == 200
        job.refresh_from_db()
        assert job.title == 'Evening event crew'
        assert job.pay_amount == Decimal('28')

    def test_non_owner_cannot_update(self, client_for, job, worker):
        response = client_for(worker).put(f'{JOBS_URL}{job.id}/', {'title': 'Hijacked job'}, format='json')
        assert response.status_code == 403

    def test_cannot_delete_job_in_progress(self, client_for, job, worker, employer):
        application = services.apply(job, worker)
        services.accept_application(job, application, employer)

        response = client_for(employer).delete(f'{JOBS_URL}{job.id}/')

        assert response.status_code == 400
        assert response.json()['code'] == 'state_conflict'
        assert Job.objects.filter(pk=job.pk).exists()

    def test_owner_deletes_active_job(self, client_for, job, employer):
        response = client_for(employer).delete(f'{JOBS_URL}{job.id}/')

        assert response.status_code == 200
        assert not Job.objects.filter(pk=job.pk).exists()


@pytest.mark.django_db
class TestCancelJob:

    def test_owner_cancels(self, client_for, job, employer):
        response = client_for(employer).post(f'{JOBS_URL}{job.id}/cancel/')

        assert response.status_code == 200
        assert response.json()['data']['job']['status'] == 'cancelled'

    def test_other_user_cannot_cancel(self, client_for, job, worker):
        response = client_for(worker).post(f'{JOBS_URL}{job.id}/cancel/')
        assert response.status_code == 403


@pytest.mark.django_db
class TestPurgeExpiredJobs:

    def test_command_deletes_only_expired(self, make_job, employer):
        keep = make_job(employer)
        make_job(employer, expires_at=timezone.now() - datetime.timedelta(days=1))

        call_command('purge_expired_jobs')

        assert list(Job.objects.values_list('id', flat=True)) == [keep.id]

    def test_dry_run_keeps_jobs(self, make_job, employer):
        make_job(employer, expires_at=timezone.now() - datetime.timedelta(days=1))

        call_command('purge_expired_jobs', '--dry-run')

        assert Job.objects.count() == 1
