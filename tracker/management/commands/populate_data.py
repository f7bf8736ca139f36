"""
Management command to populate the database with test data.
"""
from datetime import timedelta
from decimal import Decimal
import random

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from tracker.models import Doctor, MedicalVisit, Medicine, Profile, Report, Visit, VisitOrder


class Command(BaseCommand):
    help = 'Populate database with test data'

    def add_arguments(self, parser):
        parser.add_argument('--seed', type=int, default=None, help='random seed for repeatable data')
        parser.add_argument('--visits', type=int, default=40, help='number of visits to create')

    def handle(self, *args, **options):
        if options['seed'] is not None:
            random.seed(options['seed'])
        self.stdout.write('Creating test data...')

        mrs = self.create_representatives()
        doctors = self.create_doctors(mrs)
        medicines = self.create_medicines()
        self.create_visits(mrs, doctors, medicines, options['visits'])
        self.create_medical_visits_and_reports(mrs)

        self.stdout.write(self.style.SUCCESS('Test data created.'))

    def create_representatives(self):
        data = [
            ('mr_anand', 'Anand Kumar', Profile.STATUS_ACTIVE),
            ('mr_deepa', 'Deepa Iyer', Profile.STATUS_ACTIVE),
            ('mr_vikram', 'Vikram Rao', Profile.STATUS_ACTIVE),
            ('mr_sneha', 'Sneha Patil', Profile.STATUS_PENDING),
            ('mr_arjun', 'Arjun Mehta', Profile.STATUS_INACTIVE),
        ]
        mrs = []
        for username, name, status in data:
            user, created = Profile.objects.get_or_create(
                username=username,
                defaults={
                    'name': name,
                    'email': f'{username}@example.com',
                    'role': Profile.ROLE_MR,
                    'status': status,
                    'password': make_password('123456'),
                },
            )
            mrs.append(user)
            if created:
                self.stdout.write(f'  representative: {name}')
        return mrs

    def create_doctors(self, mrs):
        data = [
            ('Dr. Meera Joshi', 'Cardiology', 'City Care Hospital', True),
            ('Dr. Sanjay Gupta', 'General Medicine', 'Apollo Clinic', True),
            ('Dr. Kavita Reddy', 'Pediatrics', 'Sunrise Children\'s Hospital', True),
            ('Dr. Farhan Ali', 'Dermatology', 'Skin & Care Centre', True),
            ('Dr. Lakshmi Menon', 'Endocrinology', 'Fortis Hospital', False),
            ('Dr. Rohit Verma', 'Orthopedics', '', False),
        ]
        doctors = []
        for name, specialization, hospital, verified in data:
            doctor, _ = Doctor.objects.get_or_create(
                name=name,
                defaults={
                    'specialization': specialization,
                    'hospital': hospital,
                    'is_verified': verified,
                    'created_by': random.choice(mrs),
                },
            )
            doctors.append(doctor)
        return doctors

    def create_medicines(self):
        data = [
            ('Cardiostat', 'Tablet', 'Cardiovascular', '10mg', '10 tablets', '145.50', 400),
            ('Amlopress', 'Tablet', 'Cardiovascular', '5mg', '15 tablets', '62.00', 650),
            ('Glucofix', 'Tablet', 'Antidiabetic', '500mg', '20 tablets', '88.75', 300),
            ('Amoxyclav', 'Capsule', 'Antibiotic', '625mg', '6 capsules', '210.00', 150),
            ('Coughex', 'Syrup', 'Respiratory', '5ml', '100ml', '95.00', 120),
            ('Dermasoft', 'Cream', 'Dermatology', '1%', '30g', '120.00', 80),
            ('Insuvia', 'Injection', 'Antidiabetic', '100IU/ml', '1 vial', '480.00', 40),
            ('Opticlear', 'Drops', 'Ophthalmology', '0.5%', '10ml', '75.25', 90),
        ]
        medicines = []
        for name, mtype, category, dosage, pack_size, price, stock in data:
            medicine, _ = Medicine.objects.get_or_create(
                name=name,
                defaults={
                    'type': mtype,
                    'category': category,
                    'dosage': dosage,
                    'pack_size': pack_size,
                    'price': Decimal(price),
                    'stock': stock,
                },
            )
            medicines.append(medicine)
        return medicines

    def create_visits(self, mrs, doctors, medicines, count):
        today = timezone.localdate()
        statuses = [Visit.STATUS_APPROVED] * 3 + [Visit.STATUS_PENDING, Visit.STATUS_REJECTED]
        for _ in range(count):
            visit = Visit.objects.create(
                mr=random.choice(mrs),
                doctor=random.choice(doctors),
                date=today - timedelta(days=random.randint(0, 200)),
                notes=random.choice(['', 'Discussed new launch', 'Left samples', 'Follow up next week']),
                status=random.choice(statuses),
            )
            lines = random.sample(medicines, k=random.randint(1, 3))
            VisitOrder.objects.bulk_create([
                VisitOrder(visit=visit, medicine=m, quantity=random.randint(1, 20), price=m.price)
                for m in lines
            ])
        self.stdout.write(f'  visits: {count}')

    def create_medical_visits_and_reports(self, mrs):
        today = timezone.localdate()
        for mr in mrs[:3]:
            MedicalVisit.objects.create(
                mr=mr,
                visit_date=today - timedelta(days=random.randint(0, 30)),
                notes='Camp at district hospital',
            )
            Report.objects.create(
                mr=mr,
                date=today - timedelta(days=random.randint(0, 7)),
                content='Weekly territory summary',
            )
