from rest_framework import serializers

from accounts.models import User
from .models import Property, PropertyImage, PropertyManagerAssignment, Availability, MAX_IMAGES_PER_PROPERTY


class PropertyImageSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = PropertyImage
        fields = ["id", "url", "caption", "is_primary", "order", "created_at"]
        read_only_fields = ["id", "url", "is_primary", "order", "created_at"]

    def get_url(self, obj):
        request = self.context.get("request")
        if obj.image and request:
            return request.build_absolute_uri(obj.image.url)
        if obj.image:
            return obj.image.url
        return None


class PropertySerializer(serializers.ModelSerializer):
    owner_id = serializers.IntegerField(source="owner.id", read_only=True)
    owner_name = serializers.CharField(source="owner.display_name", read_only=True)
    amenities = serializers.ListField(
        child=serializers.CharField(max_length=100, allow_blank=True), required=False
    )
    average_rating = serializers.ReadOnlyField()
    review_count = serializers.ReadOnlyField()
    primary_image_url = serializers.SerializerMethodField()
    images = PropertyImageSerializer(many=True, read_only=True)

    class Meta:
        model = Property
        fields = [
            "id", "title", "description", "property_type",
            "price", "cleaning_fee", "service_fee",
            "address", "city", "state", "zip_code", "country", "lat", "lng",
            "bedrooms", "beds", "bathrooms", "max_guests",
            "amenities", "house_rules", "cancellation_policy",
            "is_published", "is_featured", "views_count",
            "owner_id", "owner_name", "average_rating", "review_count",
            "primary_image_url", "images", "created_at", "updated_at",
        ]
        read_only_fields = [
            "id", "is_featured", "views_count", "owner_id", "owner_name",
            "average_rating", "review_count", "primary_image_url", "images",
            "created_at", "updated_at",
        ]

    def get_primary_image_url(self, obj):
        image = obj.primary_image
        if image is None:
            return None
        return PropertyImageSerializer(image, context=self.context).data["url"]

    def validate_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("The price should be > 0.")
        return value

    def validate_cleaning_fee(self, value):
        if value < 0:
            raise serializers.ValidationError("Fees cannot be negative.")
        return value

    validate_service_fee = validate_cleaning_fee

    def validate_max_guests(self, value):
        if value < 1:
            raise serializers.ValidationError("A property must accept at least one guest.")
        return value

    def validate_amenities(self, value):
        # keep order, drop blanks and duplicates
        seen = []
        for item in value:
            item = item.strip()
            if item and item not in seen:
                seen.append(item)
        return seen

    def create(self, validated_data):
        user = self.context["request"].user
        return Property.objects.create(owner=user, **validated_data)


class PropertyImageUploadSerializer(serializers.Serializer):
    """
    Multipart upload for the images action.
    - images: one or more files
    - captions: optional, matched to images by position
    """
    images = serializers.ListField(
        child=serializers.ImageField(),
        allow_empty=False,
        write_only=True,
    )
    captions = serializers.ListField(
        child=serializers.CharField(allow_blank=True),
        required=False,
        allow_empty=True,
        write_only=True,
    )

    def validate(self, attrs):
        if len(attrs.get("images", [])) > MAX_IMAGES_PER_PROPERTY:
            raise serializers.ValidationError(f"Maximum {MAX_IMAGES_PER_PROPERTY} images at a time.")
        return attrs


class AvailabilitySerializer(serializers.ModelSerializer):
    isAvailable = serializers.BooleanField(source="is_available")

    class Meta:
        model = Availability
        fields = ["id", "date", "isAvailable", "price"]


class ManagerAssignmentSerializer(serializers.ModelSerializer):
    manager_id = serializers.IntegerField(source="manager.id", read_only=True)
    manager_email = serializers.EmailField(source="manager.email", read_only=True)
    manager_name = serializers.CharField(source="manager.display_name", read_only=True)

    class Meta:
        model = PropertyManagerAssignment
        fields = ["id", "manager_id", "manager_email", "manager_name", "assigned_at"]
        read_only_fields = fields


class ManagerAssignSerializer(serializers.Serializer):
    manager_id = serializers.IntegerField()

    def validate_manager_id(self, value):
        try:
            user = User.objects.get(pk=value)
        except User.DoesNotExist:
            raise serializers.ValidationError("User not found.")
        if user.role != User.Role.PROPERTY_MANAGER:
            raise serializers.ValidationError("Only users with the property_manager role can be assigned.")
        return user
