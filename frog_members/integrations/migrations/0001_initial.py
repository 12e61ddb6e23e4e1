from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='RefreshToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('service_name', models.CharField(choices=[('content_snare', 'Content Snare'), ('GOOGLE_REFRESH_TOKEN', 'Google Calendar')], db_index=True, max_length=64, verbose_name='Service')),
                ('refresh_token', models.TextField(verbose_name='Refresh token')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created')),
            ],
            options={
                'verbose_name': 'Refresh token',
                'verbose_name_plural': 'Refresh tokens',
                'ordering': ['-created_at'],
            },
        ),
    ]
