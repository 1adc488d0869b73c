from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
import logging
from jewelstore.core.exceptions import ConflictError
from jewelstore.core.utils import create_audit_log, paginate_queryset, parse_id_list, make_code
from .models import AdminGroup, UserGroup, CustomerGroup
from .serializers import (
    AdminGroupSerializer, UserGroupSerializer, CustomerGroupSerializer, GroupAdminSerializer
)

User = get_user_model()
logger = logging.getLogger(__name__)


def ensure_unique_group(model, label, name=None, code=None, exclude_pk=None):
    """Raise a conflict when another group already uses the name or code"""
    queryset = model.objects.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if name and queryset.filter(name__iexact=name).exists():
        raise ConflictError(f"{label} with this name already exists")
    if code and queryset.filter(code=code).exists():
        raise ConflictError(f"{label} with this code already exists")


def group_list_create(request, model, serializer_class, label):
    if request.method == 'GET':
        queryset = model.objects.all().order_by('display_order', 'name')
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(code__icontains=search))
        return Response(paginate_queryset(request, queryset, serializer_class))

    serializer = serializer_class(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    name = serializer.validated_data.get('name')
    code = serializer.validated_data.get('code') or make_code(name)
    ensure_unique_group(model, label, name=name, code=code)
    group = serializer.save()
    create_audit_log(
        request=request,
        action='create',
        model_name=model.__name__,
        object_id=str(group.id),
        object_name=group.name,
        object_reference=group.code,
    )
    return Response(serializer_class(group).data, status=status.HTTP_201_CREATED)


def group_detail(request, pk, model, serializer_class, label):
    group = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        return Response(serializer_class(group).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(group, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        name = serializer.validated_data.get('name')
        code = serializer.validated_data.get('code')
        ensure_unique_group(
            model, label,
            name=name if name and name != group.name else None,
            code=code if code and code != group.code else None,
            exclude_pk=group.pk,
        )
        group = serializer.save()
        return Response(serializer_class(group).data)
    else:  # DELETE
        group_name = group.name
        group.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name=model.__name__,
            object_id=str(pk),
            object_name=group_name,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


def group_bulk_delete(request, model):
    ids = parse_id_list(request.data.get('ids'))
    if not ids:
        return Response({'detail': 'No ids provided'}, status=status.HTTP_400_BAD_REQUEST)
    deleted, _ = model.objects.filter(id__in=ids).delete()
    logger.info(f"Bulk deleted {model.__name__} ids={ids}")
    return Response({'success': True, 'deleted': deleted})


# AdminGroup views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_group_list_create(request):
    """List all admin groups or create a new admin group"""
    return group_list_create(request, AdminGroup, AdminGroupSerializer, 'Admin group')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_group_detail(request, pk):
    """Retrieve, update or delete an admin group"""
    return group_detail(request, pk, AdminGroup, AdminGroupSerializer, 'Admin group')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_group_bulk_delete(request):
    return group_bulk_delete(request, AdminGroup)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_group_admins(request, pk):
    """
    GET: staff users with a ``selected`` flag for this group (``search`` filters).
    POST: ``admin_ids`` becomes the exact membership of the group.
    """
    group = get_object_or_404(AdminGroup, pk=pk)

    if request.method == 'GET':
        queryset = User.objects.filter(is_staff=True).order_by('name', 'username')
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(username__icontains=search) | Q(email__icontains=search)
            )
        serializer = GroupAdminSerializer(queryset, many=True, context={'group_id': group.id})
        return Response({
            'group': AdminGroupSerializer(group).data,
            'admins': serializer.data,
        })

    admin_ids = parse_id_list(request.data.get('admin_ids'))
    with transaction.atomic():
        User.objects.filter(admin_group=group).exclude(id__in=admin_ids).update(admin_group=None)
        assigned = User.objects.filter(id__in=admin_ids, is_staff=True).update(admin_group=group)

    create_audit_log(
        request=request,
        action='update',
        model_name='AdminGroup',
        object_id=str(group.id),
        object_name=group.name,
        changes={'admin_ids': admin_ids},
    )
    return Response({'success': True, 'assigned': assigned, 'message': 'Admins assigned successfully'})


# UserGroup views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_group_list_create(request):
    """List all user groups or create a new user group"""
    return group_list_create(request, UserGroup, UserGroupSerializer, 'User group')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_group_detail(request, pk):
    """Retrieve, update or delete a user group"""
    return group_detail(request, pk, UserGroup, UserGroupSerializer, 'User group')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_group_bulk_delete(request):
    return group_bulk_delete(request, UserGroup)


# CustomerGroup views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def customer_group_list_create(request):
    """List all customer groups or create a new customer group"""
    return group_list_create(request, CustomerGroup, CustomerGroupSerializer, 'Customer group')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def customer_group_detail(request, pk):
    """Retrieve, update or delete a customer group"""
    return group_detail(request, pk, CustomerGroup, CustomerGroupSerializer, 'Customer group')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def customer_group_bulk_delete(request):
    return group_bulk_delete(request, CustomerGroup)
