from django.core.management.base import BaseCommand

from terms.services import term_manager


class Command(BaseCommand):
    help = 'Reset every term visibility flag of a year back to DRAFT (active term is kept).'

    def add_arguments(self, parser):
        parser.add_argument('--year', type=int, default=None, help='Evaluation year (defaults to the current year)')

    def handle(self, *args, **options):
        year = options.get('year') or term_manager.current_year()
        count = term_manager.reset_visibility(year)
        self.stdout.write(f'Done. Term states reset for {year}: {count}')
