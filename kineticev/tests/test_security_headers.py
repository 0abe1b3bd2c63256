from django.http import HttpResponse
from django.test import RequestFactory, SimpleTestCase

from kineticev.middleware import SecurityHeadersMiddleware


class SecurityHeadersTests(SimpleTestCase):
    def test_headers_on_every_response(self):
        response = self.client.get('/this-url-does-not-exist/')
        self.assertEqual(response['X-Content-Type-Options'], 'nosniff')
        self.assertEqual(response['X-Frame-Options'], 'DENY')
        self.assertEqual(response['X-XSS-Protection'], '1; mode=block')
        self.assertEqual(response['Referrer-Policy'], 'strict-origin-when-cross-origin')

    def test_view_value_is_kept(self):
        def view(request):
            response = HttpResponse('ok')
            response['Referrer-Policy'] = 'no-referrer'
            return response

        response = SecurityHeadersMiddleware(view)(RequestFactory().get('/'))
        self.assertEqual(response['Referrer-Policy'], 'no-referrer')
        self.assertEqual(response['X-Content-Type-Options'], 'nosniff')
