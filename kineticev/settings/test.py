from .base import *

DEBUG = False
SECRET_KEY = 'test-secret-key'
DATABASES = {'default': {'ENGINE': 'django.db.backends.sqlite3', 'NAME': ':memory:'}}
ALLOWED_HOSTS = ['testserver']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
DEFAULT_FROM_EMAIL = 'noreply@kineticev.test'
BOOKING_ADMIN_EMAILS = 'ops@kineticev.test,sales@kineticev.test'
TEST_RIDE_ADMIN_EMAILS = 'rides@kineticev.test'
CONTACT_ADMIN_EMAILS = 'support@kineticev.test'
EMAIL_FAIL_SILENTLY = False
LOG_DIR = ''

PHONEPE = {
    **PHONEPE,
    'CLIENT_ID': 'test-client',
    'CLIENT_SECRET': 'test-secret',
    'AUTH_URL': 'https://gateway.test/oauth/token',
    'CHECKOUT_URL': 'https://gateway.test/checkout/v2/pay',
    'STATUS_URL': 'https://gateway.test/checkout/v2/order/{merchant_order_id}/status',
    'REDIRECT_URL': 'https://testserver/api/check-status',
}
SALESFORCE = {
    **SALESFORCE,
    'URL': 'https://crm.test/servlet/servlet.WebToLead',
    'OID': 'ORG123',
    'RETAIL_RECORD_TYPE': 'RT-RETAIL',
    'DEALERSHIP_RECORD_TYPE': 'RT-DEALER',
    'RET_URL': 'https://testserver/thank-you',
    'SEND_ALL_PAYMENTS': True,
}
GOOGLE_MAPS = {**GOOGLE_MAPS, 'API_KEY': 'test-maps-key'}
SMS = {**SMS, 'USERNAME': 'sms-user', 'API_KEY': 'sms-key', 'TEMPLATE_ID': 'TPL1'}
OTP_DEVELOPMENT_MODE = False
