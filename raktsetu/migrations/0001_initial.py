from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Profile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('donor', 'Donor'), ('client', 'Client')], max_length=10, verbose_name='Role')),
                ('name', models.CharField(max_length=120, verbose_name='Name')),
                ('phone_number', models.CharField(max_length=20, unique=True, verbose_name='Phone number')),
                ('age', models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(18), django.core.validators.MaxValueValidator(65)], verbose_name='Age')),
                ('weight', models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(45)], verbose_name='Weight (kg)')),
                ('blood_group', models.CharField(blank=True, choices=[('A+', 'A+'), ('A-', 'A-'), ('B+', 'B+'), ('B-', 'B-'), ('AB+', 'AB+'), ('AB-', 'AB-'), ('O+', 'O+'), ('O-', 'O-')], max_length=3, verbose_name='Blood group')),
                ('health_info', models.JSONField(blank=True, default=list, verbose_name='Health info')),
                ('details_submitted', models.BooleanField(default=False, verbose_name='Details submitted')),
                ('donations', models.PositiveIntegerField(default=0, verbose_name='Donations')),
                ('tokens', models.PositiveIntegerField(default=0, verbose_name='Tokens')),
                ('title', models.CharField(default='New Hero', editable=False, max_length=40, verbose_name='Title')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='BloodRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('blood_type', models.CharField(choices=[('A+', 'A+'), ('A-', 'A-'), ('B+', 'B+'), ('B-', 'B-'), ('AB+', 'AB+'), ('AB-', 'AB-'), ('O+', 'O+'), ('O-', 'O-')], max_length=3, verbose_name='Blood type')),
                ('hospital_name', models.CharField(max_length=160, verbose_name='Hospital name')),
                ('location_details', models.TextField(verbose_name='Location details')),
                ('time_limit', models.DateTimeField(verbose_name='Time limit')),
                ('urgency', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], default='medium', max_length=10, verbose_name='Urgency')),
                ('additional_info', models.TextField(blank=True, verbose_name='Additional info')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('active', 'Active'), ('partially_fulfilled', 'Partially fulfilled'), ('fulfilled', 'Fulfilled'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='blood_requests', to=settings.AUTH_USER_MODEL)),
                ('assigned_donors', models.ManyToManyField(blank=True, related_name='assigned_requests', to=settings.AUTH_USER_MODEL)),
                ('confirmed_donors', models.ManyToManyField(blank=True, related_name='confirmed_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='DonationRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('arrival_latency_minutes', models.PositiveIntegerField(blank=True, null=True, verbose_name='Arrival latency (min)')),
                ('tokens_awarded', models.PositiveIntegerField(verbose_name='Tokens awarded')),
                ('breakdown', models.JSONField(default=dict, verbose_name='Token breakdown')),
                ('completed_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Completed at')),
                ('blood_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='donation_records', to='raktsetu.bloodrequest')),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='donation_records', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-completed_at'],
                'constraints': [models.UniqueConstraint(fields=('donor', 'blood_request'), name='unique_donation_per_request')],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('request_accepted', 'Request accepted'), ('donor_arrived', 'Donor arrived'), ('donation_completed', 'Donation completed'), ('request_cancelled', 'Request cancelled')], max_length=30, verbose_name='Kind')),
                ('title', models.CharField(max_length=120, verbose_name='Title')),
                ('body', models.TextField(verbose_name='Body')),
                ('data', models.JSONField(blank=True, default=dict, verbose_name='Data')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('read_at', models.DateTimeField(blank=True, null=True, verbose_name='Read at')),
                ('blood_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='notifications', to='raktsetu.bloodrequest')),
                ('recipient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(blank=True, max_length=20, verbose_name='Role at time')),
                ('action', models.CharField(max_length=50, verbose_name='Action')),
                ('details', models.JSONField(blank=True, default=dict, verbose_name='Details')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
