from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.db.models import Q
import logging
from .models import Setting, AuditLog
from .serializers import (
    UserSerializer, UserCreateSerializer, CustomerListSerializer,
    SettingSerializer, AuditLogSerializer, TeamUserSerializer, TeamUserWriteSerializer
)
from .exceptions import ConflictError, ForbiddenError, NotFoundError
from .utils import create_audit_log, paginate_queryset, parse_bool, parse_id_list
from jewelstore.groups.models import AdminGroup, UserGroup

User = get_user_model()
logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['type'] = user.type
        token['kyc_status'] = user.kyc_status
        token['is_admin'] = bool(user.is_staff or user.is_superuser)
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Customer registration endpoint; new accounts start with KYC pending"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        logger.info(f"Registered customer {user.username} ({user.type})")
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get or update the current user's own account"""
    user = request.user
    if request.method == 'PATCH':
        data = {key: request.data[key] for key in ('name', 'first_name', 'last_name', 'phone', 'email') if key in request.data}
        serializer = UserSerializer(user, data=data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()

    user_data = UserSerializer(user).data
    user_data['is_admin'] = bool(user.is_staff or user.is_superuser)
    user_data['is_customer'] = user.is_customer
    user_data['features'] = user.admin_group.features if user.admin_group_id else []
    return Response(user_data)


def customer_stats():
    customers = User.objects.filter(is_staff=False)
    return {
        'total': customers.count(),
        'pending': customers.filter(kyc_status='pending').count(),
        'review': customers.filter(kyc_status='review').count(),
        'approved': customers.filter(kyc_status='approved').count(),
        'rejected': customers.filter(kyc_status='rejected').count(),
    }


# Customer administration
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def customer_list(request):
    """List customers with KYC filters and status counts"""
    queryset = User.objects.filter(is_staff=False).select_related('user_group', 'kyc_profile')

    search = request.query_params.get('search')
    kyc_status = request.query_params.get('status') or request.query_params.get('kyc_status')
    user_group_id = request.query_params.get('user_group_id')
    user_type = request.query_params.get('type')
    only_active = parse_bool(request.query_params.get('only_active'), False)

    if search:
        queryset = queryset.filter(Q(name__icontains=search) | Q(email__icontains=search) | Q(username__icontains=search))
    if kyc_status:
        queryset = queryset.filter(kyc_status=kyc_status)
    if user_group_id:
        queryset = queryset.filter(user_group_id=user_group_id)
    if user_type:
        queryset = queryset.filter(type=user_type)
    if only_active:
        queryset = queryset.filter(is_active=True)

    queryset = queryset.order_by('-created_at')
    data = paginate_queryset(request, queryset, CustomerListSerializer)
    data['stats'] = customer_stats()
    return Response(data)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def customer_detail(request, pk):
    """Retrieve a customer with KYC profile, documents and messages, or delete it"""
    from jewelstore.kyc.serializers import KycProfileSerializer, KycDocumentSerializer, KycMessageSerializer

    customer = get_object_or_404(User.objects.select_related('user_group'), pk=pk, is_staff=False)

    if request.method == 'DELETE':
        customer_id = customer.id
        customer_email = customer.email
        customer.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='User',
            object_id=str(customer_id),
            object_name=customer_email,
        )
        return Response({'success': True, 'message': 'User removed successfully'})

    documents = customer.kyc_documents.order_by('-created_at')
    messages = customer.kyc_messages.select_related('admin').order_by('-created_at')
    profile = getattr(customer, 'kyc_profile', None)

    data = UserSerializer(customer).data
    data['customer_group'] = {'id': customer.user_group_id, 'name': customer.user_group.name} if customer.user_group_id else None
    data['kyc_profile'] = KycProfileSerializer(profile).data if profile else None
    data['kyc_documents'] = KycDocumentSerializer(documents, many=True, context={'request': request}).data
    data['kyc_messages'] = KycMessageSerializer(messages, many=True).data
    data['kyc_document_count'] = documents.count()
    data['kyc_message_count'] = messages.count()
    data['joined_at'] = customer.created_at
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def customer_toggle_status(request, pk):
    """Activate or deactivate a customer account"""
    customer = get_object_or_404(User, pk=pk, is_staff=False)
    customer.is_active = not customer.is_active
    customer.save(update_fields=['is_active', 'updated_at'])
    return Response(UserSerializer(customer).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def customer_bulk_delete(request):
    """Delete several customers by id"""
    ids = parse_id_list(request.data.get('ids'))
    if not ids:
        return Response({'detail': 'No users to delete'}, status=status.HTTP_400_BAD_REQUEST)
    deleted, _ = User.objects.filter(id__in=ids, is_staff=False).delete()
    create_audit_log(
        request=request,
        action='bulk_delete',
        model_name='User',
        object_id=','.join(str(i) for i in ids),
        changes={'ids': ids},
    )
    return Response({'success': True, 'message': 'Users deleted successfully'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def customer_bulk_group_update(request):
    """Assign (or clear) the user group of several customers"""
    ids = parse_id_list(request.data.get('ids'))
    if not ids:
        return Response({'updated': 0})

    group_id = request.data.get('user_group_id')
    group = get_object_or_404(UserGroup, pk=group_id) if group_id not in (None, '') else None
    updated = User.objects.filter(id__in=ids, is_staff=False).update(user_group=group)
    return Response({'success': True, 'message': 'Users updated successfully', 'updated': updated})


# Team user administration
def get_team_user(pk):
    user = User.objects.select_related('admin_group').filter(pk=pk, is_staff=True).first()
    if user is None:
        raise NotFoundError('Team user not found')
    return user


def ensure_email_available(email, exclude_pk=None):
    queryset = User.objects.filter(email__iexact=email)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        raise ConflictError('Email already registered')


def apply_team_user_fields(user, data):
    for field in ('name', 'phone', 'is_active'):
        if field in data:
            setattr(user, field, data[field])
    if 'email' in data:
        user.email = data['email']
    if 'admin_group_id' in data:
        group_id = data['admin_group_id']
        user.admin_group = get_object_or_404(AdminGroup, pk=group_id) if group_id else None
    if data.get('password'):
        user.set_password(data['password'])


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def team_user_list_create(request):
    """List staff accounts by name, or create one"""
    if request.method == 'GET':
        queryset = User.objects.filter(is_staff=True).select_related('admin_group')
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(email__icontains=search))
        return Response(paginate_queryset(request, queryset.order_by('name', 'id'), TeamUserSerializer))

    serializer = TeamUserWriteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    ensure_email_available(data['email'])

    user = User(username=data['email'].lower(), type='admin', kyc_status='approved', is_staff=True)
    apply_team_user_fields(user, data)
    user.save()
    create_audit_log(
        request=request,
        action='create',
        model_name='User',
        object_id=str(user.id),
        object_name=user.email,
        changes={'admin_group_id': user.admin_group_id},
    )
    logger.info(f"Team user {user.email} created by {request.user.id}")
    return Response(TeamUserSerializer(user).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def team_user_detail(request, pk):
    """Retrieve, update or delete a staff account; superusers cannot be deleted"""
    user = get_team_user(pk)

    if request.method == 'GET':
        return Response(TeamUserSerializer(user).data)

    if request.method == 'DELETE':
        if user.is_superuser:
            raise ForbiddenError('Cannot delete super-admin user')
        user_id, user_email = user.id, user.email
        user.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='User',
            object_id=str(user_id),
            object_name=user_email,
        )
        return Response({'success': True, 'message': 'Team user removed successfully'})

    serializer = TeamUserWriteSerializer(user, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    if data.get('email') and data['email'].lower() != (user.email or '').lower():
        ensure_email_available(data['email'], exclude_pk=user.pk)

    apply_team_user_fields(user, data)
    user.save()
    create_audit_log(
        request=request,
        action='update',
        model_name='User',
        object_id=str(user.id),
        object_name=user.email,
        changes={key: value for key, value in data.items() if key != 'password'},
    )
    return Response(TeamUserSerializer(user).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def team_user_group_update(request, pk):
    """Move a staff account to another admin group"""
    user = get_team_user(pk)
    group_id = request.data.get('admin_group_id')
    if group_id in (None, ''):
        return Response({'detail': 'admin_group_id is required'}, status=status.HTTP_400_BAD_REQUEST)
    user.admin_group = get_object_or_404(AdminGroup, pk=group_id)
    user.save(update_fields=['admin_group', 'updated_at'])
    return Response(TeamUserSerializer(user).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def team_user_bulk_delete(request):
    """Delete several staff accounts by id, skipping superusers"""
    ids = parse_id_list(request.data.get('ids'))
    if not ids:
        return Response({'count': 0})
    queryset = User.objects.filter(id__in=ids, is_staff=True, is_superuser=False)
    removed_ids = list(queryset.values_list('id', flat=True))
    queryset.delete()
    if removed_ids:
        create_audit_log(
            request=request,
            action='bulk_delete',
            model_name='User',
            object_id=','.join(str(i) for i in removed_ids),
            changes={'ids': removed_ids},
        )
    return Response({'count': len(removed_ids)})


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings_qs = Setting.objects.all().order_by('key')
        serializer = SettingSerializer(settings_qs, many=True)
        return Response(serializer.data)
    else:
        serializer = SettingSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        serializer = SettingSerializer(setting)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# AuditLog views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_list(request):
    """List audit logs with optional filters"""
    queryset = AuditLog.objects.select_related('user').all()

    action = request.query_params.get('action')
    model_name = request.query_params.get('model_name')
    object_reference = request.query_params.get('object_reference')
    if action:
        queryset = queryset.filter(action=action)
    if model_name:
        queryset = queryset.filter(model_name=model_name)
    if object_reference:
        queryset = queryset.filter(object_reference__icontains=object_reference)

    return Response(paginate_queryset(request, queryset, AuditLogSerializer, default_page_size=50))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_detail(request, pk):
    """Retrieve a single audit log entry"""
    audit_log = get_object_or_404(AuditLog, pk=pk)
    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)
