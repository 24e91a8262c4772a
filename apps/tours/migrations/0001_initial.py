import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Tour",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "name",
                    models.CharField(
                        error_messages={"unique": "Duplicate field value: this tour name is already taken. Please use another value!"},
                        max_length=40,
                        unique=True,
                        validators=[django.core.validators.MinLengthValidator(10, "A tour name must have at least 10 characters.")],
                    ),
                ),
                ("slug", models.SlugField(blank=True, max_length=60, unique=True)),
                ("duration", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("max_group_size", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                (
                    "difficulty",
                    models.CharField(
                        choices=[("easy", "Easy"), ("medium", "Medium"), ("difficult", "Difficult")],
                        max_length=10,
                    ),
                ),
                (
                    "ratings_average",
                    models.FloatField(
                        default=4.5,
                        validators=[
                            django.core.validators.MinValueValidator(1.0),
                            django.core.validators.MaxValueValidator(5.0),
                        ],
                    ),
                ),
                ("ratings_quantity", models.PositiveIntegerField(default=0)),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "price_discount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("summary", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("image_cover", models.CharField(max_length=255)),
                ("images", models.JSONField(blank=True, default=list)),
                ("secret_tour", models.BooleanField(default=False)),
                ("start_latitude", models.FloatField(blank=True, null=True)),
                ("start_longitude", models.FloatField(blank=True, null=True)),
                ("start_address", models.CharField(blank=True, max_length=255)),
                ("start_description", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "guides",
                    models.ManyToManyField(blank=True, related_name="guided_tours", to=settings.AUTH_USER_MODEL),
                ),
            ],
            options={
                "verbose_name": "Tour",
                "verbose_name_plural": "Tours",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["price", "-ratings_average"], name="tour_price_rating_idx"),
                    models.Index(fields=["start_latitude", "start_longitude"], name="tour_start_point_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TourLocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "latitude",
                    models.FloatField(
                        validators=[
                            django.core.validators.MinValueValidator(-90),
                            django.core.validators.MaxValueValidator(90),
                        ]
                    ),
                ),
                (
                    "longitude",
                    models.FloatField(
                        validators=[
                            django.core.validators.MinValueValidator(-180),
                            django.core.validators.MaxValueValidator(180),
                        ]
                    ),
                ),
                ("address", models.CharField(blank=True, max_length=255)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("day", models.PositiveIntegerField(default=1)),
                (
                    "tour",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="locations",
                        to="tours.tour",
                    ),
                ),
            ],
            options={
                "ordering": ["day", "id"],
            },
        ),
        migrations.CreateModel(
            name="TourStartDate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("starts_at", models.DateTimeField()),
                (
                    "tour",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="start_dates",
                        to="tours.tour",
                    ),
                ),
            ],
            options={
                "ordering": ["starts_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("tour", "starts_at"), name="unique_tour_start_date"),
                ],
            },
        ),
    ]
