from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import moderation.conf


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('status', models.CharField(default='active', max_length=20)),
            ],
        ),
        migrations.CreateModel(
            name='Post',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(db_index=True, default=moderation.conf.default_status, help_text='Moderation status label', max_length=20)),
                ('moderated_at', models.DateTimeField(blank=True, help_text='When the moderation status was last changed or the record archived', null=True)),
                ('title', models.CharField(max_length=200)),
                ('topic', models.CharField(blank=True, max_length=50)),
                ('views', models.IntegerField(default=0)),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='posts', to='posts.category')),
                ('moderated_by', models.ForeignKey(blank=True, help_text='User who last moderated this record', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='posts_post_moderated', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Review',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('moderated_at', models.DateTimeField(blank=True, help_text='When the moderation status was last changed or the record archived', null=True)),
                ('state', models.CharField(db_index=True, default=moderation.conf.default_status, max_length=20)),
                ('rating', models.PositiveSmallIntegerField(default=3)),
                ('post', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='posts.post')),
            ],
            options={
                'abstract': False,
            },
        ),
    ]
