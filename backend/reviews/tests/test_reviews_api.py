from django.test import TestCase
from rest_framework.test import APIClient

from reviews.tests.helpers import ReviewFixtureMixin


class ReviewsApiTests(ReviewFixtureMixin, TestCase):
    def setUp(self):
        self.build_review_fixture()
        self.client = APIClient()

    def post_as(self, user, url, payload):
        self.client.force_authenticate(user)
        return self.client.post(url, payload, format='json')

    def test_full_pipeline_over_http(self):
        resp = self.post_as(self.asst, '/api/reviews/asst-dean/', {
            'teacherId': self.teacher.pk, 'term': 'START', 'comments': 'ok', 'scores': self.RUBRIC,
        })
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['code'], 'HodReviewIncomplete')

        resp = self.post_as(self.hod, '/api/reviews/hod/', {
            'teacherId': self.teacher.pk, 'term': 'START', 'comments': 'good', 'scores': self.RUBRIC,
        })
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['totalScore'], 80)
        self.assertEqual(resp.data['version'], 1)

        resp = self.post_as(self.asst, '/api/reviews/asst-dean/', {
            'teacherId': self.teacher.pk, 'term': 'START', 'comments': 'ok', 'scores': self.RUBRIC,
        })
        self.assertEqual(resp.status_code, 200)

        resp = self.post_as(self.dean, '/api/reviews/dean/', {
            'teacherId': self.teacher.pk, 'term': 'START', 'finalComment': 'great', 'finalScore': 85, 'status': 'PROMOTED',
        })
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data['promoted'])
        self.assertEqual(resp.data['displayScore'], 100)

        resp = self.post_as(self.dean, '/api/reviews/dean/', {
            'teacherId': self.teacher.pk, 'term': 'START', 'finalComment': 'again', 'status': 'ON_HOLD',
        })
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['code'], 'AlreadyFinalized')

        self.client.force_authenticate(self.hod)
        resp = self.client.get(f'/api/reviews/pipeline/{self.teacher.pk}/START/')
        self.assertEqual(resp.data['state'], 'DEAN_FINALIZED')

    def test_stale_version_is_409(self):
        payload = {'teacherId': self.teacher.pk, 'term': 'START', 'comments': 'draft', 'scores': self.RUBRIC, 'submitted': False}
        self.assertEqual(self.post_as(self.hod, '/api/reviews/hod/', payload).status_code, 200)
        self.assertEqual(self.post_as(self.hod, '/api/reviews/hod/', dict(payload, version=1)).status_code, 200)
        resp = self.post_as(self.hod, '/api/reviews/hod/', dict(payload, version=1))
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['code'], 'StaleVersion')

    def test_role_gates(self):
        resp = self.post_as(self.teacher, '/api/reviews/hod/', {'teacherId': self.teacher.pk, 'term': 'START'})
        self.assertEqual(resp.status_code, 403)
        self.client.force_authenticate(self.asst)
        self.assertEqual(self.client.get('/api/reviews/dean/').status_code, 403)

    def test_hod_queue_lists_submitted_teachers(self):
        self.client.force_authenticate(self.hod)
        resp = self.client.get('/api/reviews/hod/', {'term': 'START'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([t['teacher']['id'] for t in resp.data['teachers']], [self.teacher.pk])

    def test_hod_performance_over_http(self):
        resp = self.post_as(self.asst, '/api/reviews/asst-dean/hod/', {
            'hodId': self.hod.pk, 'term': 'START', 'comments': 'fine', 'scores': {'[Leadership] Department Duties': 4},
        })
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['totalScore'], 80)

        resp = self.post_as(self.dean, '/api/reviews/dean/hod/', {
            'hodId': self.hod.pk, 'term': 'START', 'comments': 'agreed', 'status': 'ON_HOLD', 'totalScore': 70,
        })
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['reviewerRole'], 'DEAN')
