import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='CustomUser',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(max_length=254, unique=True, verbose_name='email address')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
            },
        ),
        migrations.CreateModel(
            name='Profile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(blank=True, default='', max_length=254, verbose_name='Email')),
                ('first_name', models.CharField(blank=True, default='', max_length=150, verbose_name='First name')),
                ('last_name', models.CharField(blank=True, default='', max_length=150, verbose_name='Last name')),
                ('avatar_url', models.URLField(blank=True, default='', max_length=500, verbose_name='Avatar URL')),
                ('phone', models.CharField(blank=True, default='', max_length=32, verbose_name='Phone')),
                ('current_location', models.CharField(blank=True, default='', max_length=200, verbose_name='Current location')),
                ('onboarding_completed', models.BooleanField(default=False, verbose_name='Onboarding completed')),
                ('migration_goal', models.CharField(blank=True, choices=[('', 'Not set'), ('overseas_employment', 'Overseas employment'), ('permanent_residency', 'Permanent residency'), ('study_abroad', 'Study abroad'), ('working_holiday', 'Working holiday'), ('other', 'Other')], default='', max_length=50, verbose_name='Migration goal')),
                ('future_occupation', models.CharField(blank=True, default='', max_length=200, verbose_name='Future occupation')),
                ('english_level', models.CharField(blank=True, default='', max_length=50, verbose_name='English level')),
                ('work_experience', models.TextField(blank=True, default='', verbose_name='Work experience')),
                ('goal_location', models.CharField(blank=True, default='', help_text='Name of the goal location chosen during onboarding', max_length=200, verbose_name='Goal location')),
                ('goal_deadline', models.CharField(blank=True, default='', max_length=100, verbose_name='Goal deadline')),
                ('visa_status', models.CharField(blank=True, default='', max_length=100, verbose_name='Visa status')),
                ('is_member', models.BooleanField(default=False, verbose_name='Member')),
                ('stripe_customer_id', models.CharField(blank=True, db_index=True, default='', max_length=255, verbose_name='Stripe customer ID')),
                ('stripe_subscription_id', models.CharField(blank=True, db_index=True, default='', max_length=255, verbose_name='Stripe subscription ID')),
                ('subscription_status', models.CharField(blank=True, choices=[('', 'None'), ('active', 'Active'), ('trialing', 'Trialing'), ('past_due', 'Past due'), ('canceling', 'Canceling at period end'), ('canceled', 'Canceled'), ('incomplete', 'Incomplete'), ('incomplete_expired', 'Incomplete expired'), ('unpaid', 'Unpaid')], default='', max_length=32, verbose_name='Subscription status')),
                ('subscription_period_end', models.DateTimeField(blank=True, null=True, verbose_name='Current period end')),
                ('content_snare_client_id', models.CharField(blank=True, default='', max_length=255, verbose_name='Content Snare client ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Profile',
                'verbose_name_plural': 'Profiles',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='AdminRole',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('admin', 'Administrator')], default='admin', max_length=20, verbose_name='Role')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='admin_role', to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Admin role',
                'verbose_name_plural': 'Admin roles',
            },
        ),
    ]
