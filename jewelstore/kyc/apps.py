from django.apps import AppConfig


class KycConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'jewelstore.kyc'
    label = 'kyc'
    verbose_name = 'KYC'
