from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone

from academics.models import Department
from accounts.models import Role
from common.errors import Conflict, InvalidInput, NotFound, PreconditionFailed, Unauthorized
from terms.models import Term, TermState, TermStatus, Visibility
from terms.services import term_manager


class TermManagerTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.year = term_manager.current_year()
        self.cs = Department.objects.create(code='CS', name='Computer Science')
        self.ee = Department.objects.create(code='EE', name='Electrical')
        self.admin = User.objects.create(username='admin', role=Role.ADMIN)
        self.hod = User.objects.create(username='hod', role=Role.HOD, department=self.cs)
        now = timezone.now()
        self.start_term = term_manager.create_term(
            self.admin, name='Start 2026', year=self.year, start_date=now, end_date=now + timedelta(days=30),
            status=TermStatus.START, departments=[self.cs.pk, self.ee.pk],
        )
        self.end_term = term_manager.create_term(
            self.admin, name='End 2026', year=self.year, start_date=now, end_date=now + timedelta(days=60),
            status=TermStatus.END, departments=[self.cs.pk],
        )

    def test_create_term_rejects_duplicate_status_year_for_department(self):
        now = timezone.now()
        with self.assertRaises(PreconditionFailed) as ctx:
            term_manager.create_term(
                self.admin, name='Again', year=self.year, start_date=now, end_date=now + timedelta(days=1),
                status=TermStatus.START, departments=[self.ee.pk],
            )
        self.assertEqual(ctx.exception.code, 'TermAlreadyExists')

    def test_create_term_validates_dates_and_role(self):
        now = timezone.now()
        with self.assertRaises(InvalidInput):
            term_manager.create_term(
                self.admin, name='Bad', year=self.year + 1, start_date=now, end_date=now,
                status=TermStatus.START, departments=[],
            )
        with self.assertRaises(Unauthorized):
            term_manager.create_term(
                self.hod, name='Nope', year=self.year + 1, start_date=now, end_date=now + timedelta(days=1),
                status=TermStatus.START, departments=[],
            )

    def test_activation_resets_all_visibility_flags(self):
        TermState.objects.create(
            department=self.cs, year=self.year, active_term=TermStatus.START,
            visibility=Visibility.COMPLETE, start_term_visibility=Visibility.COMPLETE,
            end_term_visibility=Visibility.PUBLISHED,
        )
        result = term_manager.activate_term(self.admin, self.end_term.pk)
        self.assertEqual(result, {'activeTerm': 'END', 'year': self.year, 'departments': [self.cs.pk]})

        state = TermState.objects.get(department=self.cs, year=self.year)
        self.assertEqual(state.active_term, TermStatus.END)
        self.assertEqual(state.visibility, Visibility.DRAFT)
        self.assertEqual(state.start_term_visibility, Visibility.DRAFT)
        self.assertEqual(state.end_term_visibility, Visibility.DRAFT)

    def test_activation_is_all_or_nothing(self):
        other = Department.objects.create(code='ME', name='Mechanical')
        with self.assertRaises(PreconditionFailed) as ctx:
            term_manager.activate_term(self.admin, self.start_term, [self.cs.pk, self.ee.pk, other.pk])
        self.assertEqual(ctx.exception.code, 'DepartmentNotLinked')
        self.assertFalse(TermState.objects.filter(year=self.year).exists())

    def test_second_activation_of_same_term_is_already_active(self):
        term_manager.activate_term(self.admin, self.start_term, [self.cs.pk])
        state = TermState.objects.get(department=self.cs, year=self.year)
        state.start_term_visibility = Visibility.PUBLISHED
        state.save()

        with self.assertRaises(PreconditionFailed) as ctx:
            term_manager.activate_term(self.admin, self.start_term, [self.ee.pk, self.cs.pk])
        self.assertEqual(ctx.exception.code, 'AlreadyActive')

        state.refresh_from_db()
        self.assertEqual(state.start_term_visibility, Visibility.PUBLISHED)
        self.assertFalse(TermState.objects.filter(department=self.ee).exists())

    def test_concurrent_state_creation_is_a_conflict(self):
        with mock.patch.object(TermState.objects, 'create', side_effect=IntegrityError):
            with self.assertRaises(Conflict) as ctx:
                term_manager.activate_term(self.admin, self.start_term, [self.cs.pk])
        self.assertEqual(ctx.exception.code, 'ConcurrentActivation')
        self.assertEqual(ctx.exception.details, {'departments': [self.cs.pk]})
        self.assertFalse(TermState.objects.filter(year=self.year).exists())

    def test_activate_unknown_term_is_not_found(self):
        with self.assertRaises(NotFound):
            term_manager.activate_term(self.admin, 999999)

    def test_complete_and_reset_visibility(self):
        term_manager.activate_term(self.admin, self.start_term)
        state = term_manager.complete_visibility(self.hod, self.cs, 'START')
        self.assertEqual(state.start_term_visibility, Visibility.COMPLETE)
        self.assertEqual(state.visibility, Visibility.COMPLETE)

        with self.assertRaises(Unauthorized):
            term_manager.complete_visibility(self.hod, self.ee, 'START')

        self.assertEqual(term_manager.reset_visibility(self.year), 2)
        self.assertEqual(term_manager.reset_visibility(self.year), 2)
        state.refresh_from_db()
        self.assertEqual(state.visibility, Visibility.DRAFT)
        self.assertEqual(state.start_term_visibility, Visibility.DRAFT)
        self.assertEqual(state.active_term, TermStatus.START)

    def test_reset_command(self):
        term_manager.activate_term(self.admin, self.start_term)
        TermState.objects.update(visibility=Visibility.PUBLISHED)
        call_command('reset_term_visibility', year=self.year)
        self.assertFalse(TermState.objects.exclude(visibility=Visibility.DRAFT).exists())

    def test_deadline_is_term_end_date(self):
        self.assertEqual(term_manager.term_deadline(self.cs, 'END', self.year), self.end_term.end_date)
        self.assertIsNone(term_manager.term_deadline(self.ee, 'END', self.year))
