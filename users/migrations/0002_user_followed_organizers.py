from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="user",
            name="followed_organizers",
            field=models.ManyToManyField(blank=True, related_name="followers", to=settings.AUTH_USER_MODEL),
        ),
    ]
