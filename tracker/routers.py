"""
URL mappings for the MedTrack API.

Paths match the front-end's endpoint table.  Note that trailing slashes
are deliberately omitted (``APPEND_SLASH`` is off).
"""
from django.urls import path, include

from .auth_views import (
    jwt_logout_view,
    jwt_refresh_view,
    login_view,
    me_view,
    register_view,
)
from .views import approvals, dashboard, doctors, health, medicines, visits

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),

    # Accounts
    path('api/auth/login', login_view, name='login'),
    path('api/auth/register', register_view, name='register'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt-refresh'),
    path('api/auth/logout', jwt_logout_view, name='jwt-logout'),
    path('api/auth/me', me_view, name='me'),

    # Doctors
    path('api/doctors', doctors.doctors_list),
    path('api/doctors/create', doctors.doctor_create),

    # Medicine catalog
    path('api/medicines', medicines.list_medicines),
    path('api/medicines/create', medicines.create_medicine),
    path('api/medicines/<int:medicine_id>/update', medicines.update_medicine),
    path('api/medicines/<int:medicine_id>/delete', medicines.delete_medicine),

    # Visit logging
    path('api/visits/preview', visits.preview_visit),
    path('api/visits/submit', visits.submit_visit_view, name='visit-submit'),
    path('api/visits/my', visits.my_visits),

    # Dashboards
    path('api/mr/dashboard', dashboard.mr_dashboard),
    path('api/admin/dashboard', dashboard.admin_dashboard, name='admin-dashboard'),
    path('api/admin/approvals/approve', approvals.approve_item),
    path('api/admin/approvals/reject', approvals.reject_item),
]
