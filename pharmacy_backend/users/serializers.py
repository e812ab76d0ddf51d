from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from permissions.roles import ROLE_ADMIN, ROLE_CHOICES, ROLE_PHARMACIST, permissions_for_role

User = get_user_model()


# ---------------- REGISTER (ADMIN ONLY) ----------------
class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(
        write_only=True,
        min_length=6,
        style={"input_type": "password"},
    )
    role = serializers.ChoiceField(choices=ROLE_CHOICES, default=ROLE_PHARMACIST)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "password",
            "email",
            "first_name",
            "last_name",
            "role",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate_username(self, value):
        value = (value or "").strip()
        if len(value) < 3:
            raise serializers.ValidationError("Username must be at least 3 characters long.")
        return value

    def create(self, validated_data):
        return User.objects.create_user(
            username=validated_data["username"],
            password=validated_data["password"],
            email=validated_data.get("email", ""),
            first_name=validated_data.get("first_name", ""),
            last_name=validated_data.get("last_name", ""),
            role=validated_data.get("role", ROLE_PHARMACIST),
        )


# ---------------- JWT LOGIN ----------------
class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    SimpleJWT obtain-pair with role + username embedded in the access token
    and echoed in the response body for the frontend.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["username"] = user.username
        token["role"] = user.role
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data["user"] = UserSerializer(self.user).data
        return data


# ---------------- USER OUTPUT ----------------
class UserSerializer(serializers.ModelSerializer):
    """
    Safe user representation for frontend consumption.
    """

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "role",
            "is_active",
            "created_at",
        ]


class MeSerializer(UserSerializer):
    permissions = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["last_login", "permissions"]

    def get_permissions(self, obj) -> dict:
        return permissions_for_role(obj.role)


# ---------------- USER MANAGEMENT (ADMIN) ----------------
def _guard_admin_role(instance, role):
    if instance is not None and instance.role == ROLE_ADMIN and role != ROLE_ADMIN:
        raise serializers.ValidationError("Cannot change admin role.")
    return role


class UserUpdateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(
        write_only=True,
        required=False,
        min_length=6,
        style={"input_type": "password"},
    )
    role = serializers.ChoiceField(choices=ROLE_CHOICES, required=False)

    class Meta:
        model = User
        fields = [
            "username",
            "password",
            "email",
            "first_name",
            "last_name",
            "role",
            "is_active",
        ]

    def validate_username(self, value):
        value = (value or "").strip()
        if len(value) < 3:
            raise serializers.ValidationError("Username must be at least 3 characters long.")
        return value

    def validate_role(self, value):
        return _guard_admin_role(self.instance, value)

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password.strip())
        instance.save()
        return instance


class UserRoleSerializer(serializers.ModelSerializer):
    role = serializers.ChoiceField(choices=ROLE_CHOICES)

    class Meta:
        model = User
        fields = ["role"]

    def validate_role(self, value):
        return _guard_admin_role(self.instance, value)
