from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Avg

MAX_IMAGES_PER_PROPERTY = 10


def validate_image_size(image_field):
    max_mb = 5
    if image_field.size > max_mb * 1024 * 1024:
        raise ValidationError(f"The image size must not exceed {max_mb}MB.")


class Property(models.Model):
    class PropertyType(models.TextChoices):
        APARTMENT = "apartment", "Apartment"
        HOUSE = "house", "House"
        VILLA = "villa", "Villa"
        ROOM = "room", "Room"
        STUDIO = "studio", "Studio"
        CONDO = "condo", "Condo"
        TOWNHOUSE = "townhouse", "Townhouse"
        OTHER = "other", "Other"

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="properties")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    property_type = models.CharField(max_length=20, choices=PropertyType.choices, default=PropertyType.APARTMENT)

    # nightly base price; per-night overrides live in Availability
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0.01"))])
    cleaning_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    service_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100)
    lat = models.FloatField(blank=True, null=True)
    lng = models.FloatField(blank=True, null=True)

    bedrooms = models.PositiveIntegerField(default=1)
    beds = models.PositiveIntegerField(default=1)
    bathrooms = models.DecimalField(max_digits=4, decimal_places=1, default=1)
    max_guests = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    amenities = models.JSONField(default=list, blank=True)
    house_rules = models.TextField(blank=True)
    cancellation_policy = models.CharField(max_length=255, blank=True)

    is_published = models.BooleanField(default=False)
    is_featured = models.BooleanField(default=False)
    views_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "properties"
        indexes = [
            models.Index(fields=["is_published", "city"]),
            models.Index(fields=["is_published", "is_featured"]),
        ]

    def __str__(self):
        return f"{self.title} ({self.city}) - ${self.price}/night"

    @property
    def average_rating(self):
        avg = self.reviews.aggregate(avg=Avg("rating"))["avg"]
        return round(avg, 2) if avg is not None else 0

    @property
    def review_count(self):
        return self.reviews.count()

    @property
    def primary_image(self):
        images = list(self.images.all())
        for image in images:
            if image.is_primary:
                return image
        return images[0] if images else None

    def is_managed_by(self, user) -> bool:
        """Owner, an assigned property manager or an admin."""
        if user is None or not user.is_authenticated:
            return False
        if getattr(user, "is_admin", False) or self.owner_id == user.id:
            return True
        return self.manager_assignments.filter(manager=user).exists()


class PropertyImage(models.Model):
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="images")
    image = models.ImageField(upload_to="properties/")
    caption = models.CharField(max_length=200, blank=True)
    is_primary = models.BooleanField(default=False)
    order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["order", "created_at"]
        indexes = [
            models.Index(fields=["property", "order"]),
        ]

    def __str__(self):
        return f"Image for {self.property.title}"

    def clean(self):
        if self.image:
            validate_image_size(self.image)


class PropertyManagerAssignment(models.Model):
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="manager_assignments")
    manager = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="managed_assignments")
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["property", "manager"], name="unique_property_manager"),
        ]

    def __str__(self):
        return f"Manager {self.manager_id} of property {self.property_id}"


class Availability(models.Model):
    """One calendar night of a property: blocked or not, optional price override."""

    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="availability")
    date = models.DateField()
    is_available = models.BooleanField(default=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)

    class Meta:
        ordering = ["date"]
        verbose_name_plural = "availability"
        constraints = [
            models.UniqueConstraint(fields=["property", "date"], name="unique_property_date"),
        ]

    def __str__(self):
        state = "open" if self.is_available else "blocked"
        return f"{self.property_id} {self.date} {state}"
