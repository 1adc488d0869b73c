"""
Metal rate storage and the external rate feed
"""
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime
import logging
import requests
from jewelstore.core.exceptions import ServiceError
from jewelstore.core.utils import to_decimal
from jewelstore.catalog.models import Metal
from .models import PriceRate

logger = logging.getLogger(__name__)

PURITY_ORDER = {
    'gold': ['24K', '22K', '18K', '14K'],
    'silver': ['999', '958', '925'],
}


def build_metal_summary(metal):
    """Latest rate overall plus the latest rate per purity, in purity order"""
    rates = PriceRate.objects.filter(metal__iexact=metal).order_by('-effective_at', '-id')
    label = metal.capitalize()

    latest = rates.first()
    if latest is None:
        return {'metal': metal, 'label': label, 'latest': None, 'rates': []}

    seen = set()
    latest_by_purity = []
    for rate in rates:
        if rate.purity and rate.purity not in seen:
            seen.add(rate.purity)
            latest_by_purity.append(rate)

    order = PURITY_ORDER.get(metal.lower(), [])
    latest_by_purity.sort(key=lambda r: order.index(r.purity) if r.purity in order else 999)

    return {
        'metal': metal,
        'label': label,
        'latest': {
            'purity': latest.purity,
            'price_per_gram': float(latest.price_per_gram),
            'currency': latest.currency,
            'effective_at': latest.effective_at.isoformat() if latest.effective_at else None,
            'source': latest.source,
        },
        'rates': [
            {'purity': r.purity, 'price_per_gram': float(r.price_per_gram), 'currency': r.currency}
            for r in latest_by_purity
        ],
    }


def metal_summaries():
    metals = Metal.objects.filter(is_active=True).order_by('display_order', 'name')
    return {metal.name.lower(): build_metal_summary(metal.name.lower()) for metal in metals}


def store_metal_rates(metal, rates, currency=None, source=None, effective_at=None):
    """Insert one PriceRate per ``{purity, price_per_gram, currency}`` entry"""
    if not rates:
        raise ServiceError('At least one rate is required')

    if isinstance(effective_at, str):
        effective_at = parse_datetime(effective_at)
    effective_at = effective_at or timezone.now()

    created = []
    with transaction.atomic():
        for rate in rates:
            price = to_decimal(rate.get('price_per_gram'))
            if price is None or price < 0:
                raise ServiceError(f"Invalid price_per_gram for purity {rate.get('purity')}")
            created.append(PriceRate.objects.create(
                metal=metal.strip().lower(),
                purity=rate.get('purity'),
                price_per_gram=price,
                currency=rate.get('currency') or currency or 'INR',
                source=source or 'manual',
                effective_at=effective_at,
            ))

    logger.info(f"Stored {len(created)} {metal} rates (source={source or 'manual'})")
    return created


def fetch_feed_rates(metal=None):
    """GET the configured feed; expects ``{"rates": [{metal, purity, price_per_gram, currency}]}``"""
    headers = {'Accept': 'application/json'}
    if settings.METAL_RATES_API_KEY:
        headers['Authorization'] = f"Bearer {settings.METAL_RATES_API_KEY}"
    params = {'metal': metal} if metal else {}

    try:
        response = requests.get(
            settings.METAL_RATES_API_URL,
            params=params,
            headers=headers,
            timeout=settings.METAL_RATES_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.RequestException as e:
        logger.warning(f"Metal rate feed request failed: {str(e)}")
        raise ServiceError(f"Could not fetch metal rates: {str(e)}")
    except ValueError:
        raise ServiceError('Metal rate feed returned invalid JSON')

    rates = payload.get('rates', []) if isinstance(payload, dict) else payload
    return [r for r in rates if isinstance(r, dict)]


def sync_rates(metal=None):
    """Pull rates from METAL_RATES_API_URL; without a configured feed nothing is fetched"""
    message = f"Synced {metal} rates" if metal else 'Synced all rates'

    if not settings.METAL_RATES_API_URL:
        logger.info('METAL_RATES_API_URL not configured, rate sync skipped')
        return {'success': True, 'message': message, 'created': 0}

    grouped = {}
    for rate in fetch_feed_rates(metal):
        rate_metal = (rate.get('metal') or metal or '').strip().lower()
        if not rate_metal or (metal and rate_metal != metal.lower()):
            continue
        grouped.setdefault(rate_metal, []).append(rate)

    created = 0
    for rate_metal, rates in grouped.items():
        created += len(store_metal_rates(rate_metal, rates, source='api'))

    return {'success': True, 'message': message, 'created': created}
