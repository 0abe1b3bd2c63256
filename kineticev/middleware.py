from django.conf import settings


class SecurityHeadersMiddleware:
    """Attach the baseline security headers to every response."""

    DEFAULT_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "X-XSS-Protection": "1; mode=block",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }

    def __init__(self, get_response):
        self.get_response = get_response
        self.headers = {**self.DEFAULT_HEADERS, **getattr(settings, "EXTRA_SECURITY_HEADERS", {})}

    def __call__(self, request):
        response = self.get_response(request)
        for name, value in self.headers.items():
            # views may set a stricter value themselves
            if name not in response:
                response[name] = value
        return response
