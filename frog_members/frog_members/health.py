"""
Health check endpoints for the load balancer and uptime monitoring.
"""
import time

from django.conf import settings
from django.db import connection
from django.http import JsonResponse


def live_check(request):
    """Liveness: the process answers requests."""
    return JsonResponse({'status': 'alive', 'timestamp': time.time()})


def ready_check(request):
    """
    Readiness: database reachable and critical settings present.

    Returns 200 when healthy, 503 otherwise.
    """
    result = {
        'status': 'healthy',
        'timestamp': time.time(),
        'version': getattr(settings, 'VERSION', '1.0.0'),
        'checks': {},
    }

    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
            cursor.fetchone()
        result['checks']['database'] = 'ok'
    except Exception as e:
        result['status'] = 'unhealthy'
        result['checks']['database'] = f'error: {str(e)[:100]}'

    missing = [name for name in ('SECRET_KEY', 'APP_URL') if not getattr(settings, name, None)]
    if missing:
        result['status'] = 'unhealthy'
        result['checks']['settings'] = f"missing: {', '.join(missing)}"
    else:
        result['checks']['settings'] = 'ok'

    http_status = 200 if result['status'] == 'healthy' else 503
    return JsonResponse(result, status=http_status)
