from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Setting, AuditLog


class UserSerializer(serializers.ModelSerializer):
    user_group_name = serializers.CharField(source='user_group.name', read_only=True, default=None)
    customer_group_name = serializers.CharField(source='customer_group.name', read_only=True, default=None)
    admin_group_name = serializers.CharField(source='admin_group.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'name', 'first_name', 'last_name', 'phone', 'type',
                  'kyc_status', 'kyc_notes', 'kyc_comments_enabled',
                  'user_group', 'user_group_name', 'customer_group', 'customer_group_name',
                  'admin_group', 'admin_group_name',
                  'is_active', 'is_staff', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['kyc_status', 'kyc_notes', 'is_staff', 'is_superuser', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)
    type = serializers.ChoiceField(choices=User.CUSTOMER_TYPES, default='retailer')

    class Meta:
        model = User
        fields = ['username', 'email', 'name', 'password', 'password_confirm', 'first_name', 'last_name', 'phone', 'type']

    def validate_email(self, value):
        if value and User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already registered")
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create(**validated_data, is_active=True, kyc_status='pending')
        user.set_password(password)
        user.save()
        return user


class CustomerListSerializer(serializers.ModelSerializer):
    user_group = serializers.SerializerMethodField()
    kyc_profile = serializers.SerializerMethodField()
    joined_at = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'phone', 'type', 'is_active', 'kyc_status', 'kyc_notes',
                  'user_group', 'kyc_profile', 'joined_at']

    def get_user_group(self, obj):
        if obj.user_group_id:
            return {'id': obj.user_group_id, 'name': obj.user_group.name}
        return None

    def get_kyc_profile(self, obj):
        profile = getattr(obj, 'kyc_profile', None)
        if not profile:
            return None
        return {
            'business_name': profile.business_name,
            'city': profile.city,
            'state': profile.state,
        }


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']


class TeamUserSerializer(serializers.ModelSerializer):
    admin_group = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'name', 'phone', 'type', 'admin_group',
                  'is_active', 'is_superuser', 'last_login', 'created_at', 'updated_at']

    def get_admin_group(self, obj):
        if obj.admin_group_id:
            return {'id': obj.admin_group_id, 'name': obj.admin_group.name}
        return None


class TeamUserWriteSerializer(serializers.Serializer):
    """Staff account fields; ``password`` and ``email`` are required on create only"""
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, validators=[validate_password])
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    admin_group_id = serializers.IntegerField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if self.instance is None and not attrs.get('password'):
            raise serializers.ValidationError({'password': 'Password is required'})
        return attrs
