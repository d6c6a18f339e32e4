from django.urls import NoReverseMatch
from django.urls import reverse
from rest_framework import serializers

from farming_magazine.users.models import User


class UserSerializer(serializers.ModelSerializer[User]):
    full_name = serializers.CharField(source="name", read_only=True)
    id = serializers.IntegerField(read_only=True)

    # Identity and access fields are managed by admins, not by profile edits
    username = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    role = serializers.CharField(read_only=True)
    account_locked = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "role",
            "account_locked",
            "url",
        ]

    url = serializers.SerializerMethodField()

    def get_url(self, obj: User) -> str:
        request = self.context.get("request")
        candidates = []
        namespace = getattr(
            getattr(request, "resolver_match", None),
            "namespace",
            None,
        )
        if namespace:
            candidates.append(f"{namespace}:user-detail")
        candidates.extend(["api_v1:user-detail", "user-detail"])

        for view_name in candidates:
            try:
                url = reverse(view_name, kwargs={"username": obj.username})
            except NoReverseMatch:
                continue
            return request.build_absolute_uri(url) if request is not None else url

        # Routers differ between environments; an unresolved link is not fatal.
        return ""

    def update(self, instance, validated_data):
        forbidden = {
            k
            for k in ("username", "email", "role", "account_locked")
            if k in self.initial_data
        }
        if forbidden:
            errors = {f: "This field is read-only." for f in sorted(forbidden)}
            raise serializers.ValidationError(errors)
        instance.first_name = validated_data.get("first_name", instance.first_name)
        instance.last_name = validated_data.get("last_name", instance.last_name)
        instance.save()
        return instance


class LockStatusSerializer(serializers.Serializer):
    locked = serializers.BooleanField()
    remaining_minutes = serializers.IntegerField(required=False, allow_null=True)
