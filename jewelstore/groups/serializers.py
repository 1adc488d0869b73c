from rest_framework import serializers
from django.contrib.auth import get_user_model
from jewelstore.core.utils import make_code
from .models import AdminGroup, UserGroup, CustomerGroup

User = get_user_model()


class GroupSerializerMixin:
    """Fill ``code`` from ``name`` when the client leaves it blank"""

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if not attrs.get('code') and attrs.get('name') and not getattr(self.instance, 'code', None):
            attrs['code'] = make_code(attrs['name'])
        return attrs


class AdminGroupSerializer(GroupSerializerMixin, serializers.ModelSerializer):
    admins_count = serializers.IntegerField(source='admins.count', read_only=True)

    class Meta:
        model = AdminGroup
        fields = ['id', 'name', 'code', 'description', 'features', 'is_active', 'display_order',
                  'admins_count', 'created_at', 'updated_at']
        extra_kwargs = {
            'code': {'required': False, 'validators': []},
            'name': {'validators': []},
        }

    def validate_features(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Features must be a list of strings")
        return value


class UserGroupSerializer(GroupSerializerMixin, serializers.ModelSerializer):
    users_count = serializers.IntegerField(source='users.count', read_only=True)

    class Meta:
        model = UserGroup
        fields = ['id', 'name', 'code', 'description', 'is_active', 'display_order',
                  'users_count', 'created_at', 'updated_at']
        extra_kwargs = {
            'code': {'required': False, 'validators': []},
            'name': {'validators': []},
        }


class CustomerGroupSerializer(GroupSerializerMixin, serializers.ModelSerializer):
    customers_count = serializers.IntegerField(source='customers.count', read_only=True)

    class Meta:
        model = CustomerGroup
        fields = ['id', 'name', 'code', 'description', 'is_active', 'display_order',
                  'customers_count', 'created_at', 'updated_at']
        extra_kwargs = {
            'code': {'required': False, 'validators': []},
            'name': {'validators': []},
        }


class GroupAdminSerializer(serializers.ModelSerializer):
    """Staff user row on the group assignment screen"""
    selected = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'name', 'email', 'admin_group', 'selected']

    def get_selected(self, obj):
        return obj.admin_group_id == self.context.get('group_id')
