from django.contrib import admin
from .models import Appointment, GroupActivity, Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ["name", "clinic", "duration_minutes", "price", "is_active"]
    list_filter = ["is_active", "clinic"]
    search_fields = ["name", "clinic__name"]
    list_editable = ["is_active"]
    ordering = ["clinic", "name"]

    fieldsets = (
        (None, {"fields": ("clinic",)}),
        ("Details", {"fields": ("name", "duration_minutes", "price", "description", "is_active")}),
    )


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "client",
        "professional",
        "clinic",
        "service",
        "date",
        "start_time",
        "end_time",
        "status",
        "created_at",
    ]
    list_filter = ["status", "clinic", "date"]
    search_fields = ["client__name", "professional__name", "clinic__name"]
    raw_id_fields = ["client", "professional", "clinic", "service", "created_by"]
    readonly_fields = ["created_at", "updated_at"]
    date_hierarchy = "date"


@admin.register(GroupActivity)
class GroupActivityAdmin(admin.ModelAdmin):
    list_display = ["name", "professional", "clinic", "date", "start_time", "end_time", "max_participants", "status"]
    list_filter = ["status", "clinic", "date"]
    search_fields = ["name", "professional__name"]
    raw_id_fields = ["professional", "clinic", "service"]
    date_hierarchy = "date"
