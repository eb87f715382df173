from django.contrib import admin
from .models import Clinic, ClinicStaff


class ClinicStaffInline(admin.TabularInline):
    model = ClinicStaff
    fk_name = 'clinic'
    extra = 0
    raw_id_fields = ['user', 'added_by']
    readonly_fields = ['added_at']


@admin.register(Clinic)
class ClinicAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'phone', 'email', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'owner__name', 'owner__phone']
    readonly_fields = ['created_at']
    raw_id_fields = ['owner']
    inlines = [ClinicStaffInline]

    fieldsets = (
        ('Clinic Information', {
            'fields': ('name', 'address', 'phone', 'email', 'description')
        }),
        ('Management', {
            'fields': ('owner', 'is_active')
        }),
        ('Metadata', {
            'fields': ('created_at',)
        }),
    )


@admin.register(ClinicStaff)
class ClinicStaffAdmin(admin.ModelAdmin):
    list_display = ['user', 'clinic', 'role', 'added_by', 'is_active', 'added_at']
    list_filter = ['role', 'is_active', 'clinic', 'added_at']
    search_fields = ['user__name', 'user__phone', 'clinic__name']
    readonly_fields = ['added_at']
    raw_id_fields = ['user', 'added_by']
