from django.test import TestCase
from rest_framework.test import APIClient

from common.errors import PreconditionFailed, Unauthorized
from reviews.services import review_pipeline
from reviews.services.pipeline_state import pipeline_state, pipeline_states
from reviews.tests.helpers import ReviewFixtureMixin


class TeacherEvaluationDetailTests(ReviewFixtureMixin, TestCase):
    def setUp(self):
        self.build_review_fixture()

    def detail(self, reviewer, teacher=None):
        return review_pipeline.teacher_evaluation_detail(reviewer, (teacher or self.teacher).pk, 'START')

    def hod_review(self):
        review_pipeline.submit_hod_review(self.hod, self.teacher.pk, 'START', 'Solid year', scores=self.RUBRIC)

    def asst_review(self):
        review_pipeline.submit_asst_review(self.asst, self.teacher.pk, 'START', 'Agree', scores=self.RUBRIC)

    def test_hod_reads_answers_of_own_department(self):
        data = self.detail(self.hod)
        self.assertEqual(data['state'], 'SELF_SUBMITTED')
        self.assertEqual([q['id'] for q in data['questions']], [q.pk for q in self.questions])
        self.assertEqual({q['answer'] for q in data['questions']}, {'4'})
        self.assertEqual(data['selfComment']['comment'], 'My year')
        self.assertIsNone(data['hodReview'])
        self.assertNotIn('asstReview', data)
        self.assertNotIn('finalReview', data)

        pending = self.detail(self.hod, self.teacher2)
        self.assertEqual(pending['state'], 'NO_SUBMISSION')
        self.assertEqual({q['answer'] for q in pending['questions']}, {None})
        self.assertIsNone(pending['selfComment'])

    def test_hod_of_another_department_is_refused(self):
        with self.assertRaises(Unauthorized):
            self.detail(self.other_hod)
        with self.assertRaises(Unauthorized):
            self.detail(self.teacher)

    def test_asst_dean_waits_for_the_hod_review(self):
        with self.assertRaises(PreconditionFailed) as ctx:
            self.detail(self.asst)
        self.assertEqual(ctx.exception.code, 'HodReviewIncomplete')

        self.hod_review()
        data = self.detail(self.asst)
        self.assertEqual(data['state'], 'HOD_REVIEWED')
        self.assertEqual(data['hodReview']['totalScore'], 80)
        self.assertIsNone(data['asstReview'])
        self.assertNotIn('finalReview', data)

    def test_dean_waits_for_the_asst_dean_review(self):
        self.hod_review()
        with self.assertRaises(PreconditionFailed) as ctx:
            self.detail(self.dean)
        self.assertEqual(ctx.exception.code, 'AsstReviewIncomplete')

        self.asst_review()
        data = self.detail(self.dean)
        self.assertEqual(data['state'], 'ASST_REVIEWED')
        self.assertEqual(data['asstReview']['comments'], 'Agree')
        self.assertIsNone(data['finalReview'])

    def test_bulk_states_match_single_teacher_state(self):
        self.hod_review()
        teachers = [self.teacher, self.teacher2]
        states = pipeline_states(teachers, 'START', self.year)
        for teacher in teachers:
            self.assertEqual(states[teacher.pk], pipeline_state(teacher, 'START', self.year))


class TeacherEvaluationDetailApiTests(ReviewFixtureMixin, TestCase):
    def setUp(self):
        self.build_review_fixture()
        self.client = APIClient()

    def get_as(self, user, url):
        self.client.force_authenticate(user)
        return self.client.get(url)

    def test_hod_route_returns_answers(self):
        resp = self.get_as(self.hod, f'/api/reviews/hod/teacher/{self.teacher.pk}/?term=START')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['selfComment']['comment'], 'My year')
        self.assertEqual(len(resp.data['questions']), 2)
        self.assertEqual(resp.data['questions'][0]['answer'], '4')

    def test_routes_are_bound_to_their_role(self):
        resp = self.get_as(self.asst, f'/api/reviews/hod/teacher/{self.teacher.pk}/')
        self.assertEqual(resp.status_code, 403)

        resp = self.get_as(self.asst, f'/api/reviews/asst-dean/teacher/{self.teacher.pk}/')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['code'], 'HodReviewIncomplete')

        resp = self.get_as(self.dean, f'/api/reviews/dean/teacher/{self.teacher.pk}/?year=abc')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['code'], 'InvalidYear')

    def test_unknown_teacher_is_not_found(self):
        resp = self.get_as(self.hod, '/api/reviews/hod/teacher/999999/')
        self.assertEqual(resp.status_code, 404)
