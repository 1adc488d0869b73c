from rest_framework.permissions import BasePermission
from jewelstore.core.exceptions import ForbiddenError


class IsKycApproved(BasePermission):
    """
    Customers (retailer, wholesaler, sales) must have an approved KYC.
    Admins and other account types pass through.
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        if user.is_staff or not user.is_customer:
            return True

        # re-read the status so a fresh approval applies to tokens issued before it
        kyc_status = type(user).objects.filter(pk=user.pk).values_list('kyc_status', flat=True).first()
        if kyc_status != 'approved':
            raise ForbiddenError(detail={
                'message': 'Your KYC is not approved. Please complete the onboarding process.',
                'kycStatus': kyc_status,
                'error': 'KYC_NOT_APPROVED',
            })
        return True
