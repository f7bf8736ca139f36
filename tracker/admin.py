"""
Django admin registrations for the tracker models.

Superusers can inspect and correct representatives, doctors, the
medicine catalog and logged visits via the ``/admin/`` URL.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    Doctor,
    MedicalVisit,
    Medicine,
    Profile,
    Report,
    Visit,
    VisitOrder,
)


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('username', 'name', 'role', 'status', 'is_staff', 'is_superuser')
    list_filter = ('role', 'status')
    search_fields = ('username', 'name', 'email')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'specialization', 'hospital', 'is_verified', 'created_at')
    list_filter = ('is_verified',)
    search_fields = ('name', 'hospital', 'specialization')


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'type', 'category', 'dosage', 'pack_size', 'price', 'stock')
    list_filter = ('type', 'category')
    search_fields = ('name', 'category')


class VisitOrderInline(admin.TabularInline):
    model = VisitOrder
    extra = 0


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ('id', 'date', 'mr', 'doctor', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('mr__username', 'mr__name', 'doctor__name')
    inlines = [VisitOrderInline]


@admin.register(MedicalVisit)
class MedicalVisitAdmin(admin.ModelAdmin):
    list_display = ('id', 'visit_date', 'mr', 'status')
    list_filter = ('status',)


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ('id', 'date', 'mr', 'status')
    list_filter = ('status',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'object_type', 'object_id', 'user')
    list_filter = ('action', 'object_type')
    search_fields = ('user__username',)
