from django.contrib import admin

from .models import Term, TermState


@admin.register(Term)
class TermAdmin(admin.ModelAdmin):
    list_display = ('name', 'status', 'year', 'start_date', 'end_date')
    list_filter = ('status', 'year')
    search_fields = ('name',)
    filter_horizontal = ('departments',)


@admin.register(TermState)
class TermStateAdmin(admin.ModelAdmin):
    list_display = ('department', 'year', 'active_term', 'visibility', 'start_term_visibility', 'end_term_visibility', 'updated_at')
    list_filter = ('year', 'active_term', 'visibility')
    readonly_fields = ('updated_at',)
