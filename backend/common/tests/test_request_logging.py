from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from evaluations.tests.helpers import EvaluationFixtureMixin


class RequestLoggingTests(EvaluationFixtureMixin, TestCase):
    def setUp(self):
        self.build_fixture()
        self.client = APIClient()

    def test_api_call_names_view_and_actor(self):
        self.client.force_authenticate(self.hod)
        with self.assertLogs('evalportal.requests', 'INFO') as logs:
            resp = self.client.get('/api/reviews/hod/', {'term': 'START'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(logs.records), 1)
        self.assertEqual(logs.records[0].levelname, 'INFO')
        line = logs.output[0]
        self.assertIn('GET /api/reviews/hod/', line)
        self.assertIn('view=HodReviewView', line)
        self.assertIn(f'actor=hod/HOD/dept={self.dept.pk}', line)
        self.assertIn('status=200', line)

    def test_refused_call_is_a_warning(self):
        self.client.force_authenticate(self.teacher)
        with self.assertLogs('evalportal.requests', 'INFO') as logs:
            resp = self.client.get('/api/reviews/hod/')
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(logs.records[0].levelname, 'WARNING')
        self.assertIn('actor=teacher/TEACHER', logs.output[0])

    @override_settings(SLOW_REQUEST_LOG_MS=0)
    def test_slow_call_is_flagged(self):
        self.client.force_authenticate(self.hod)
        with self.assertLogs('evalportal.requests', 'INFO') as logs:
            self.client.get('/api/reviews/hod/')
        self.assertEqual(logs.records[0].levelname, 'WARNING')
        self.assertTrue(logs.output[0].endswith(' SLOW'))

    @override_settings(WORKFLOW_REQUEST_LOG_ENABLED=False)
    def test_can_be_switched_off(self):
        self.client.force_authenticate(self.hod)
        with self.assertNoLogs('evalportal.requests', 'INFO'):
            self.client.get('/api/reviews/hod/')

    def test_anonymous_call_is_logged(self):
        with self.assertLogs('evalportal.requests', 'INFO') as logs:
            resp = self.client.get('/api/reviews/hod/')
        self.assertEqual(resp.status_code, 401)
        self.assertIn('actor=anonymous', logs.output[0])
