import django.utils.timezone
from django.db import migrations, models

import scheduling.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Provider',
            fields=[
                ('id', models.CharField(default=scheduling.models.generate_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('start_time', models.TimeField(help_text='Shift start (time of day)')),
                ('end_time', models.TimeField(help_text='Shift end (time of day)')),
                ('excluded_weekdays', models.JSONField(blank=True, default=list, help_text='Weekdays without service (0=Sunday, 6=Saturday)')),
                ('position', models.PositiveIntegerField(default=0, editable=False)),
            ],
            options={
                'ordering': ['position'],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.CharField(default=scheduling.models.generate_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ('client_name', models.CharField(max_length=200)),
                ('unit', models.CharField(help_text='Apartment or room', max_length=50)),
                ('hotel', models.CharField(choices=[('Hotel Golden Park', 'Hotel Golden Park'), ('Vilage Inn', 'Vilage Inn'), ('Thermas Resort', 'Thermas Resort')], default='Vilage Inn', max_length=50)),
                ('phone', models.CharField(blank=True, default='', max_length=50)),
                ('service_id', models.CharField(max_length=20)),
                ('date', models.DateField()),
                ('time', models.TimeField()),
                ('provider_id', models.CharField(db_index=True, max_length=64)),
                ('point_of_sale', models.CharField(choices=[('Recepção', 'Recepção'), ('Reserva', 'Reserva')], max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('done', 'Done')], default='pending', max_length=10)),
                ('photo', models.TextField(blank=True, default='', help_text='Attached image (data URL or link)')),
                ('created_by', models.CharField(blank=True, default='', max_length=200)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('position', models.PositiveIntegerField(default=0, editable=False)),
            ],
            options={
                'ordering': ['position'],
                'indexes': [
                    models.Index(fields=['provider_id', 'date'], name='booking_provider_date_idx'),
                    models.Index(fields=['date'], name='booking_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StoredValue',
            fields=[
                ('key', models.CharField(max_length=100, primary_key=True, serialize=False)),
                ('value', models.TextField()),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
    ]
