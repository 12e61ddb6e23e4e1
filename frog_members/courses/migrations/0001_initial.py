import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import courses.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='GoalLocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('city', models.CharField(max_length=100, verbose_name='City')),
                ('country', models.CharField(max_length=100, verbose_name='Country')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
            ],
            options={
                'verbose_name': 'Goal location',
                'verbose_name_plural': 'Goal locations',
                'ordering': ['country', 'city'],
            },
        ),
        migrations.CreateModel(
            name='JobPosition',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200, verbose_name='Title')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('industry', models.CharField(blank=True, default='', max_length=100, verbose_name='Industry')),
            ],
            options={
                'verbose_name': 'Job position',
                'verbose_name_plural': 'Job positions',
                'ordering': ['title'],
            },
        ),
        migrations.CreateModel(
            name='School',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('website', models.URLField(blank=True, default='', max_length=500, verbose_name='Website')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('average_english_level', models.CharField(blank=True, default='', max_length=100, verbose_name='Average English level')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('goal_location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='schools', to='courses.goallocation', verbose_name='Location')),
            ],
            options={
                'verbose_name': 'School',
                'verbose_name_plural': 'Schools',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='SchoolPhoto',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('url', models.URLField(max_length=500, verbose_name='Image URL')),
                ('description', models.CharField(blank=True, default='', max_length=255, verbose_name='Description')),
                ('sort_order', models.PositiveIntegerField(default=0, verbose_name='Order')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('school', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='photos', to='courses.school')),
            ],
            options={
                'ordering': ['sort_order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Course',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, verbose_name='Name')),
                ('category', models.CharField(blank=True, db_index=True, default='', max_length=100, verbose_name='Category')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('total_weeks', models.PositiveIntegerField(blank=True, null=True, verbose_name='Total weeks')),
                ('lecture_weeks', models.PositiveIntegerField(blank=True, null=True, verbose_name='Lecture weeks')),
                ('work_permit_weeks', models.PositiveIntegerField(blank=True, null=True, verbose_name='Work permit weeks')),
                ('start_date', models.DateField(blank=True, null=True, verbose_name='Start date')),
                ('tuition_and_others', models.CharField(blank=True, default='', max_length=255, verbose_name='Tuition and fees')),
                ('url', models.URLField(blank=True, default='', max_length=500, verbose_name='Course page')),
                ('admission_requirements', models.TextField(blank=True, default='', verbose_name='Admission requirements')),
                ('graduation_requirements', models.TextField(blank=True, default='', verbose_name='Graduation requirements')),
                ('job_support', models.TextField(blank=True, default='', verbose_name='Job support')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('migration_goals', models.JSONField(blank=True, default=list, help_text='Profile migration_goal values this course is suited for', verbose_name='Migration goals')),
                ('content_snare_template_id', models.CharField(blank=True, default='', help_text='Online application is only offered when set', max_length=255, verbose_name='Content Snare template ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('school', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='courses', to='courses.school', verbose_name='School')),
            ],
            options={
                'verbose_name': 'Course',
                'verbose_name_plural': 'Courses',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='CourseJobPosition',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('course', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='course_job_positions', to='courses.course')),
                ('job_position', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='course_job_positions', to='courses.jobposition')),
            ],
            options={
                'unique_together': {('course', 'job_position')},
            },
        ),
        migrations.AddField(
            model_name='course',
            name='job_positions',
            field=models.ManyToManyField(blank=True, related_name='courses', through='courses.CourseJobPosition', to='courses.jobposition'),
        ),
        migrations.CreateModel(
            name='CourseSubject',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255, verbose_name='Title')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('course', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subjects', to='courses.course')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='CourseIntakeDate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('year', models.PositiveIntegerField(blank=True, null=True, verbose_name='Year')),
                ('month', models.PositiveSmallIntegerField(verbose_name='Month')),
                ('day', models.PositiveSmallIntegerField(blank=True, null=True, verbose_name='Day')),
                ('start_date', models.DateField(blank=True, null=True, verbose_name='Start date')),
                ('application_deadline', models.DateField(blank=True, null=True, verbose_name='Application deadline')),
                ('is_tentative', models.BooleanField(default=False, verbose_name='Tentative')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('course', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='intake_dates', to='courses.course')),
            ],
            options={
                'verbose_name': 'Intake date',
                'verbose_name_plural': 'Intake dates',
                'ordering': ['year', 'month', 'day'],
            },
        ),
        migrations.CreateModel(
            name='FavoriteCourse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('course', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='favorited_by', to='courses.course')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='favorite_courses', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'unique_together': {('user', 'course')},
            },
        ),
        migrations.CreateModel(
            name='SchoolAccessToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('token', models.UUIDField(default=uuid.uuid4, editable=False, unique=True, verbose_name='Token')),
                ('email', models.EmailField(max_length=254, verbose_name='Email')),
                ('expires_at', models.DateTimeField(default=courses.models._default_token_expiry, verbose_name='Expires at')),
                ('used_at', models.DateTimeField(blank=True, null=True, verbose_name='Last used')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='school_tokens_created', to=settings.AUTH_USER_MODEL)),
                ('school', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='access_tokens', to='courses.school')),
            ],
            options={
                'verbose_name': 'School access token',
                'verbose_name_plural': 'School access tokens',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='CourseApplication',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('submitted', 'Submitted'), ('reviewing', 'Reviewing'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='draft', max_length=20, verbose_name='Status')),
                ('purpose', models.CharField(blank=True, choices=[('overseas_job', 'Overseas job'), ('career_change', 'Career change'), ('language', 'Language')], default='', max_length=30, verbose_name='Purpose')),
                ('payment_method', models.CharField(blank=True, choices=[('japan_bank', 'Japanese bank transfer'), ('credit_card', 'Credit card'), ('canada_bank', 'Canadian bank transfer')], default='', max_length=30, verbose_name='Payment method')),
                ('preferred_start_date', models.DateField(blank=True, null=True, verbose_name='Preferred start date')),
                ('content_snare_id', models.CharField(blank=True, default='', max_length=255, verbose_name='Content Snare client ID')),
                ('content_snare_request_id', models.CharField(blank=True, db_index=True, default='', max_length=255, verbose_name='Content Snare request ID')),
                ('request_url', models.URLField(blank=True, default='', max_length=500, verbose_name='Document request link')),
                ('admin_notes', models.TextField(blank=True, default='', verbose_name='Admin notes')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('course', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='applications', to='courses.course')),
                ('intake_date', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='applications', to='courses.courseintakedate')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='course_applications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Course application',
                'verbose_name_plural': 'Course applications',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ApplicationComment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content', models.TextField(verbose_name='Comment')),
                ('is_admin', models.BooleanField(default=False, verbose_name='From staff')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('application', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='comments', to='courses.courseapplication')),
                ('author', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='UserSchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255, verbose_name='Title')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('year', models.PositiveIntegerField(verbose_name='Year')),
                ('month', models.PositiveSmallIntegerField(verbose_name='Month')),
                ('day', models.PositiveSmallIntegerField(blank=True, null=True, verbose_name='Day')),
                ('is_completed', models.BooleanField(default=False, verbose_name='Completed')),
                ('is_admin_locked', models.BooleanField(default=False, verbose_name='Locked by staff')),
                ('sort_order', models.IntegerField(default=0, verbose_name='Order')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('course_application', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='schedules', to='courses.courseapplication')),
                ('intake_date', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='courses.courseintakedate')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedules', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Schedule item',
                'verbose_name_plural': 'Schedule items',
                'ordering': ['year', 'month', 'day', 'sort_order'],
            },
        ),
    ]
