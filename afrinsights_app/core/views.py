from django.http import HttpResponse


def healthz(request):
    """Lightweight health endpoint for load balancers and readiness checks.
    Returns 200 OK without auth or redirects.
    """
    return HttpResponse("ok", content_type="text/plain")
