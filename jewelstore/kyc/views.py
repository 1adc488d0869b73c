from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
import logging
from jewelstore.core.utils import create_audit_log, parse_bool
from .models import KycDocument
from .serializers import (
    KycProfileSerializer, KycDocumentSerializer, KycDocumentUploadSerializer,
    KycDocumentStatusSerializer, KycMessageSerializer, KycStatusUpdateSerializer
)
from . import utils as kyc

User = get_user_model()
logger = logging.getLogger(__name__)


# Customer onboarding
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def onboarding(request):
    """Everything the onboarding screen needs; creates the profile on first visit"""
    user = request.user
    profile = kyc.get_or_create_profile(user)
    documents = user.kyc_documents.order_by('-created_at')
    messages = user.kyc_messages.select_related('admin').order_by('created_at')

    return Response({
        'user': {
            'name': user.name,
            'email': user.email,
            'phone': user.phone,
            'type': user.type,
            'kyc_status': user.kyc_status,
            'kyc_notes': user.kyc_notes,
        },
        'profile': KycProfileSerializer(profile).data,
        'documents': KycDocumentSerializer(documents, many=True, context={'request': request}).data,
        'document_types': [value for value, _ in KycDocument.DOCUMENT_TYPES],
        'messages': KycMessageSerializer(messages, many=True).data,
        'can_customer_reply': user.kyc_comments_enabled,
    })


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def profile(request):
    """Get or update the current customer's KYC profile"""
    if request.method == 'GET':
        return Response(KycProfileSerializer(kyc.get_or_create_profile(request.user)).data)

    serializer = KycProfileSerializer(data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    kyc_profile = kyc.update_profile(request.user, serializer.validated_data)
    return Response(KycProfileSerializer(kyc_profile).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def document_list_upload(request):
    """List own KYC documents or upload a new one (multipart ``type`` + ``file``)"""
    if request.method == 'GET':
        documents = request.user.kyc_documents.order_by('-created_at')
        return Response(KycDocumentSerializer(documents, many=True, context={'request': request}).data)

    serializer = KycDocumentUploadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    document = kyc.upload_document(request.user, serializer.validated_data['type'], serializer.validated_data['file'])
    return Response(KycDocumentSerializer(document, context={'request': request}).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def document_delete(request, pk):
    kyc.delete_document(request.user, pk)
    return Response({'message': 'Document deleted successfully'})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def message_list_create(request):
    """Conversation with the KYC team; posting needs comments enabled"""
    if request.method == 'GET':
        messages = request.user.kyc_messages.select_related('admin').order_by('created_at')
        return Response(KycMessageSerializer(messages, many=True).data)

    message = (request.data.get('message') or '').strip()
    if not message:
        return Response({'message': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
    kyc_message = kyc.send_customer_message(request.user, message)
    return Response(KycMessageSerializer(kyc_message).data, status=status.HTTP_201_CREATED)


# Admin review
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_update_status(request, pk):
    """Approve/reject/... a customer's KYC with optional remarks"""
    customer = get_object_or_404(User, pk=pk, is_staff=False)
    serializer = KycStatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_status = serializer.validated_data['status']
    remarks = serializer.validated_data.get('remarks')
    previous = kyc.update_kyc_status(customer, new_status, remarks=remarks, admin=request.user)
    create_audit_log(
        request=request,
        action='kyc_status',
        model_name='User',
        object_id=str(customer.id),
        object_name=customer.email,
        changes={'kyc_status': {'old': previous, 'new': new_status}, 'remarks': remarks},
    )
    return Response({'status': new_status, 'message': 'KYC status updated successfully'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_add_message(request, pk):
    customer = get_object_or_404(User, pk=pk, is_staff=False)
    message = (request.data.get('message') or '').strip()
    if not message:
        return Response({'message': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
    kyc_message = kyc.add_admin_message(customer, message, request.user)
    return Response(KycMessageSerializer(kyc_message).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_update_document(request, pk, document_id):
    """Review one of the customer's documents"""
    customer = get_object_or_404(User, pk=pk, is_staff=False)
    serializer = KycDocumentStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    document = kyc.update_document_status(
        customer, document_id, serializer.validated_data['status'], serializer.validated_data.get('remarks')
    )
    return Response(KycDocumentSerializer(document, context={'request': request}).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_toggle_comments(request, pk):
    customer = get_object_or_404(User, pk=pk, is_staff=False)
    enabled = kyc.toggle_comments(customer, parse_bool(request.data.get('enabled')))
    return Response({'kyc_comments_enabled': enabled})
