from rest_framework import serializers
from .models import KycProfile, KycDocument, KycMessage


class KycProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = KycProfile
        fields = [
            'id', 'user', 'business_name', 'business_website', 'gst_number', 'pan_number',
            'registration_number', 'address_line1', 'address_line2', 'city', 'state',
            'postal_code', 'country', 'contact_name', 'contact_phone', 'metadata',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'user', 'created_at', 'updated_at']


class KycDocumentSerializer(serializers.ModelSerializer):
    type_label = serializers.CharField(source='get_type_display', read_only=True)
    url = serializers.SerializerMethodField()
    uploaded_at = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = KycDocument
        fields = ['id', 'type', 'type_label', 'status', 'remarks', 'url', 'uploaded_at', 'updated_at']
        read_only_fields = ['id', 'status', 'remarks', 'uploaded_at', 'updated_at']

    def get_url(self, obj):
        if not obj.file:
            return None
        request = self.context.get('request')
        return request.build_absolute_uri(obj.file.url) if request else obj.file.url


class KycDocumentUploadSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=KycDocument.DOCUMENT_TYPES)
    file = serializers.FileField()


class KycDocumentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=KycDocument.STATUS_CHOICES)
    remarks = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class KycMessageSerializer(serializers.ModelSerializer):
    admin = serializers.SerializerMethodField()

    class Meta:
        model = KycMessage
        fields = ['id', 'sender_type', 'message', 'admin', 'created_at']
        read_only_fields = ['id', 'sender_type', 'admin', 'created_at']

    def get_admin(self, obj):
        if obj.admin_id:
            return {'id': obj.admin_id, 'name': obj.admin.display_name}
        return None


class KycStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['pending', 'review', 'approved', 'rejected'])
    remarks = serializers.CharField(required=False, allow_blank=True, allow_null=True)
