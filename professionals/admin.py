from django.contrib import admin
from .models import AbsenceRequest, ProfessionalService, ScheduleBreak, WorkSchedule


class ScheduleBreakInline(admin.TabularInline):
    model = ScheduleBreak
    extra = 0
    fields = ["name", "start_time", "end_time", "sort_order", "is_active"]


@admin.register(WorkSchedule)
class WorkScheduleAdmin(admin.ModelAdmin):
    list_display = [
        "professional",
        "clinic",
        "get_day_display",
        "exception_date",
        "start_time",
        "end_time",
        "is_exception",
        "is_active",
    ]
    list_filter = ["clinic", "is_exception", "day_of_week", "is_active"]
    search_fields = ["professional__name", "professional__phone", "clinic__name"]
    list_editable = ["is_active"]
    raw_id_fields = ["professional"]
    ordering = ["professional", "is_exception", "day_of_week", "start_time"]
    inlines = [ScheduleBreakInline]

    def get_day_display(self, obj):
        return obj.get_day_of_week_display() if obj.day_of_week is not None else "—"
    get_day_display.short_description = "Day"
    get_day_display.admin_order_field = "day_of_week"


@admin.register(AbsenceRequest)
class AbsenceRequestAdmin(admin.ModelAdmin):
    list_display = ["professional", "clinic", "absence_type", "start_date", "end_date", "total_days", "status"]
    list_filter = ["status", "absence_type", "clinic"]
    search_fields = ["professional__name", "reason"]
    raw_id_fields = ["professional"]
    date_hierarchy = "start_date"
    actions = ["approve", "reject"]

    @admin.action(description="Approve selected requests")
    def approve(self, request, queryset):
        queryset.update(status=AbsenceRequest.Status.APPROVED)

    @admin.action(description="Reject selected requests")
    def reject(self, request, queryset):
        queryset.update(status=AbsenceRequest.Status.REJECTED)


@admin.register(ProfessionalService)
class ProfessionalServiceAdmin(admin.ModelAdmin):
    list_display = ["professional", "service"]
    list_filter = ["service__clinic"]
    search_fields = ["professional__name", "service__name"]
    raw_id_fields = ["professional"]
