from django.test import TestCase
from rest_framework.test import APIClient

from evaluations.models import Question, SelfComment
from evaluations.tests.helpers import EvaluationFixtureMixin


class EvaluationsApiTests(EvaluationFixtureMixin, TestCase):
    def setUp(self):
        self.build_fixture()
        self.client = APIClient()

    def test_hod_authors_and_publishes(self):
        self.client.force_authenticate(self.hod)
        for i in range(3):
            resp = self.client.post('/api/evaluations/questions/', {
                'question': f'Rate item {i}', 'type': 'MCQ', 'term': 'START',
                'options': ['1', '2', '3', '4', '5'], 'optionScores': [1, 2, 3, 4, 5],
            }, format='json')
            self.assertEqual(resp.status_code, 201)

        resp = self.client.post('/api/evaluations/questions/publish/', {'term': 'START'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data, {'publishedCount': 3})
        self.assertEqual(Question.objects.filter(is_published=True).count(), 3)

        resp = self.client.post('/api/evaluations/questions/publish/', {'term': 'START'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['code'], 'NoUnpublishedQuestions')

    def test_teacher_cannot_reach_question_authoring(self):
        self.client.force_authenticate(self.teacher)
        resp = self.client.get('/api/evaluations/questions/')
        self.assertEqual(resp.status_code, 403)

    def test_teacher_submission_flow(self):
        questions = [self.make_question(i, published=True) for i in (1, 2, 3)]
        self.open_for_answers()
        self.client.force_authenticate(self.teacher)

        resp = self.client.get('/api/evaluations/teacher/questions/', {'term': 'START'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data['questions']), 3)
        self.assertNotIn('optionScores', resp.data['questions'][0])

        partial = [{'questionId': q.pk, 'answer': '3'} for q in questions[:2]]
        resp = self.client.post('/api/evaluations/teacher/submission/', {
            'term': 'START', 'answers': partial, 'selfComment': 'Done',
        }, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['code'], 'IncompleteAnswers')

        full = [{'questionId': q.pk, 'answer': '3'} for q in questions]
        resp = self.client.post('/api/evaluations/teacher/submission/', {
            'term': 'START', 'answers': full, 'selfComment': 'Done',
        }, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertTrue(SelfComment.objects.filter(teacher=self.teacher).exists())

        resp = self.client.patch('/api/evaluations/teacher/submission/', {'term': 'START', 'answers': full}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['code'], 'Locked')

        resp = self.client.get('/api/evaluations/teacher/status/')
        self.assertEqual(resp.data['start']['status'], 'SUBMITTED')
