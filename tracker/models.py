"""
Database models for the MedTrack backend.

These models capture the tables the field-tracking screens read and
write: representative profiles, doctors, the medicine catalog, visits
with their order lines, secondary medical visits and reports.  Table
and column names mirror the data service the front-end was built
against, so ``db_table`` is pinned on every model and foreign keys are
named such that their columns come out as ``mr_id``, ``doctor_id``,
``visit_id`` and ``medicine_id``.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator
from django.db import models


class Profile(AbstractUser):
    """Custom user model carrying a role and an activation status.

    Representatives sign up as ``pending`` and are switched to
    ``active`` or ``inactive`` by an administrator.  An inactive
    representative keeps read access but may not log new visits.
    """
    ROLE_MR = 'mr'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_MR, 'Medical Representative'),
        (ROLE_ADMIN, 'Administrator'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
    ]

    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_MR, db_index=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    class Meta:
        db_table = 'profiles'

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.username

    @property
    def is_inactive_mr(self) -> bool:
        return self.role == self.ROLE_MR and self.status == self.STATUS_INACTIVE

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Doctor(models.Model):
    """A doctor a representative visits.

    Doctors added from the field start unverified and wait in the
    admin approval queue.
    """
    name = models.CharField(max_length=255)
    specialization = models.CharField(max_length=255, blank=True)
    hospital = models.CharField(max_length=255, blank=True)
    is_verified = models.BooleanField(default=False, db_index=True)
    created_by = models.ForeignKey(
        Profile, null=True, blank=True, on_delete=models.SET_NULL, related_name='doctors_added'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'doctors'

    def __str__(self) -> str:
        return f"{self.name} ({self.hospital})" if self.hospital else self.name


class Medicine(models.Model):
    TYPE_CHOICES = [
        ('Tablet', 'Tablet'),
        ('Capsule', 'Capsule'),
        ('Syrup', 'Syrup'),
        ('Injection', 'Injection'),
        ('Cream', 'Cream'),
        ('Ointment', 'Ointment'),
        ('Drops', 'Drops'),
    ]

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='Tablet')
    category = models.CharField(max_length=255)
    dosage = models.CharField(max_length=100)
    # Free text such as "10 tablets" or "100ml".
    pack_size = models.CharField(max_length=100, default='1')
    price = models.DecimalField(max_digits=10, decimal_places=2)
    stock = models.PositiveIntegerField(default=0)
    description = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'medicines'

    def __str__(self) -> str:
        return f"{self.name} {self.dosage}".strip()


class Visit(models.Model):
    """A dated meeting between a representative and a doctor."""
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    mr = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='visits')
    # Rejecting an unverified doctor deletes it; a doctor with logged
    # visits cannot be removed that way.
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='visits')
    date = models.DateField(db_index=True)
    notes = models.TextField(blank=True, default='')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'visits'
        indexes = [
            models.Index(fields=['mr', 'date'], name='visits_mr_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.date} {self.doctor_id} ({self.status})"


class VisitOrder(models.Model):
    """One medicine order line attached to a visit.

    ``price`` is the unit price captured when the line was staged and is
    never re-read from the catalog.
    """
    visit = models.ForeignKey(Visit, on_delete=models.CASCADE, related_name='visit_orders')
    medicine = models.ForeignKey(
        Medicine, null=True, blank=True, on_delete=models.SET_NULL, related_name='visit_orders'
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = 'visit_orders'

    def __str__(self) -> str:
        return f"{self.quantity} x {self.medicine_id} @ {self.price}"


class MedicalVisit(models.Model):
    """Secondary visit record with its own approval lifecycle."""
    STATUS_CHOICES = Visit.STATUS_CHOICES

    mr = models.ForeignKey(
        Profile, null=True, blank=True, on_delete=models.SET_NULL, related_name='medical_visits'
    )
    visit_date = models.DateField()
    notes = models.TextField(blank=True, default='')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=Visit.STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'medical_visits'

    def __str__(self) -> str:
        return f"Medical visit {self.visit_date} ({self.status})"


class Report(models.Model):
    STATUS_CHOICES = Visit.STATUS_CHOICES

    mr = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='reports')
    date = models.DateField()
    content = models.TextField(blank=True, default='')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=Visit.STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'reports'

    def __str__(self) -> str:
        return f"Report {self.date} ({self.status})"


class AuditEvent(models.Model):
    user = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.object_type}:{self.object_id}"
