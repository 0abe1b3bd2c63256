from dotenv import load_dotenv
load_dotenv()

import os
from decimal import Decimal
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _env_bool(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name, default=""):
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-change-me")
DEBUG = _env_bool("DJANGO_DEBUG")
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1")
CSRF_TRUSTED_ORIGINS = _env_list("DJANGO_CSRF_TRUSTED_ORIGINS")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    "kineticev",
    "payments",
    "crm",
    "bookings",
    "serviceability",
    "verification",
    "leads",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "kineticev.middleware.SecurityHeadersMiddleware",
]

ROOT_URLCONF = "kineticev.urls"
WSGI_APPLICATION = "kineticev.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "kineticev" / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": os.getenv("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.getenv("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.getenv("DB_USER", ""),
        "PASSWORD": os.getenv("DB_PASSWORD", ""),
        "HOST": os.getenv("DB_HOST", ""),
        "PORT": os.getenv("DB_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "Asia/Kolkata"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

SESSION_ENGINE = "django.contrib.sessions.backends.db"

# Email (SMTP; works with SES SMTP credentials)
EMAIL_BACKEND = os.getenv("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST = os.getenv("EMAIL_HOST", "email-smtp.ap-south-1.amazonaws.com")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = _env_bool("EMAIL_USE_TLS", "true")
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "KineticEV <noreply@kineticev.in>")
EMAIL_FAIL_SILENTLY = _env_bool("EMAIL_FAIL_SILENTLY", "true")

BOOKING_ADMIN_EMAILS = os.getenv("BOOKING_ADMIN_EMAILS", "")
TEST_RIDE_ADMIN_EMAILS = os.getenv("TEST_RIDE_ADMIN_EMAILS", "") or BOOKING_ADMIN_EMAILS
CONTACT_ADMIN_EMAILS = os.getenv("CONTACT_ADMIN_EMAILS", "") or BOOKING_ADMIN_EMAILS
EMAIL_SUBJECT_PREFIX_BRAND = os.getenv("EMAIL_SUBJECT_PREFIX_BRAND", "[KineticEV]")

BOOKING_AMOUNT = Decimal(os.getenv("BOOKING_AMOUNT", "1000.00"))

# Gateway: PhonePe PG (OAuth client credentials + checkout v2)
PHONEPE = {
    "CLIENT_ID": os.getenv("PHONEPE_CLIENT_ID", ""),
    "CLIENT_SECRET": os.getenv("PHONEPE_CLIENT_SECRET", ""),
    "CLIENT_VERSION": os.getenv("PHONEPE_CLIENT_VERSION", "1"),
    "AUTH_URL": os.getenv(
        "PHONEPE_AUTH_URL",
        "https://api.phonepe.com/apis/identity-manager/v1/oauth/token",
    ),
    "CHECKOUT_URL": os.getenv(
        "PHONEPE_CHECKOUT_URL",
        "https://api.phonepe.com/apis/pg/checkout/v2/pay",
    ),
    "STATUS_URL": os.getenv(
        "PHONEPE_STATUS_URL",
        "https://api.phonepe.com/apis/pg/checkout/v2/order/{merchant_order_id}/status",
    ),
    "REDIRECT_URL": os.getenv("PHONEPE_REDIRECT_URL", "http://localhost:8000/api/check-status"),
    "CHECKOUT_SCRIPT_URL": os.getenv(
        "PHONEPE_CHECKOUT_SCRIPT_URL", "https://mercury.phonepe.com/web/bundle/checkout.js"
    ),
    "CONNECT_TIMEOUT": float(os.getenv("PHONEPE_CONNECT_TIMEOUT", "10")),
    "READ_TIMEOUT": float(os.getenv("PHONEPE_READ_TIMEOUT", "30")),
}

# CRM: Salesforce Web-to-Lead
SALESFORCE = {
    "URL": os.getenv(
        "SALESFORCE_URL",
        "https://webto.salesforce.com/servlet/servlet.WebToLead?encoding=UTF-8",
    ),
    "OID": os.getenv("SALESFORCE_OID", ""),
    "RETAIL_RECORD_TYPE": os.getenv("SALESFORCE_RETAIL_RECORD_TYPE", ""),
    "DEALERSHIP_RECORD_TYPE": os.getenv("SALESFORCE_DEALERSHIP_RECORD_TYPE", ""),
    "LEAD_STATUS": os.getenv("SALESFORCE_LEAD_STATUS", "Open - Not Contacted"),
    "LEAD_SOURCE": os.getenv("SALESFORCE_LEAD_SOURCE", "Website"),
    "RET_URL": os.getenv("SALESFORCE_RET_URL", ""),
    "SEND_ALL_PAYMENTS": _env_bool("SEND_ALL_PAYMENTS_TO_SALESFORCE", "true"),
    "TIMEOUT": float(os.getenv("SALESFORCE_TIMEOUT", "30")),
    # Salesforce custom field id -> logical field name
    "CUSTOM_FIELDS": {
        os.getenv("SF_FIELD_PINCODE", "00N_pincode"): "pincode",
        os.getenv("SF_FIELD_WHATSAPP", "00N_whatsapp"): "whatsapp_number",
        os.getenv("SF_FIELD_ADDRESS", "00N_address"): "address",
        os.getenv("SF_FIELD_MESSAGE", "00N_message"): "message",
        os.getenv("SF_FIELD_PRODUCT_VARIANT", "00N_product_variant"): "product_variant",
        os.getenv("SF_FIELD_VARIANT", "00N_variant"): "variant",
        os.getenv("SF_FIELD_COLOR", "00N_color"): "color",
        os.getenv("SF_FIELD_TEST_RIDE_DATE", "00N_test_ride_date"): "test_ride_date",
        os.getenv("SF_FIELD_TEST_RIDE_DATE_WEB", "00N_test_ride_date_web"): "test_ride_date_web",
        os.getenv("SF_FIELD_BOOKING_AMOUNT", "00N_booking_amount"): "booking_amount",
        os.getenv("SF_FIELD_PAYMENT_METHOD", "00N_payment_method"): "payment_method",
        os.getenv("SF_FIELD_PAYMENT_DATE", "00N_payment_date"): "payment_date",
        os.getenv("SF_FIELD_PAYMENT_DATE_WEB", "00N_payment_date_web"): "payment_date_web",
        os.getenv("SF_FIELD_TRANSACTION_ID", "00N_transaction_id"): "transaction_id",
        os.getenv("SF_FIELD_PAYMENT_STATUS", "00N_payment_status"): "payment_status",
        os.getenv("SF_FIELD_CONCERN", "00N_concern"): "concern",
    },
    "VALUE_MAPPINGS": {
        "variant": {"dx": "DX", "dx-plus": "DX+"},
        "payment_status": {"success": "Success", "failed": "Failed", "pending": "Pending"},
        "concern": {"enquiry": "Enquiry", "dealership": "Dealership"},
    },
}

GOOGLE_MAPS = {
    "API_KEY": os.getenv("GOOGLE_MAPS_API_KEY", ""),
    "GEOCODE_URL": os.getenv(
        "GOOGLE_GEOCODE_URL", "https://maps.googleapis.com/maps/api/geocode/json"
    ),
    "DISTANCE_MATRIX_URL": os.getenv(
        "GOOGLE_DISTANCE_MATRIX_URL",
        "https://maps.googleapis.com/maps/api/distancematrix/json",
    ),
    "TIMEOUT": float(os.getenv("GOOGLE_MAPS_TIMEOUT", "10")),
}
SERVICEABLE_MAX_DISTANCE_KM = int(os.getenv("SERVICEABLE_MAX_DISTANCE_KM", "50"))

# OTP over SMS
SMS = {
    "URL": os.getenv("SMS_API_URL", "https://sms.example-provider.in/api/send"),
    "USERNAME": os.getenv("SMS_USERNAME", ""),
    "API_KEY": os.getenv("SMS_API_KEY", ""),
    "SENDER": os.getenv("SMS_SENDER", "KNTCEV"),
    "ROUTE": os.getenv("SMS_ROUTE", "TRANS"),
    "TEMPLATE_ID": os.getenv("SMS_TEMPLATE_ID", ""),
    "TEMPLATE": os.getenv(
        "SMS_TEMPLATE",
        "Your KineticEV verification code is {#var#}. It is valid for 5 minutes.",
    ),
    "TIMEOUT": float(os.getenv("SMS_TIMEOUT", "30")),
}
OTP_EXPIRY_SECONDS = int(os.getenv("OTP_EXPIRY_SECONDS", "300"))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "3"))
OTP_RATE_LIMIT_PER_HOUR = int(os.getenv("OTP_RATE_LIMIT_PER_HOUR", "15"))
OTP_DEVELOPMENT_MODE = _env_bool("OTP_DEVELOPMENT_MODE")

LOG_DIR = os.getenv("LOG_DIR", "")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {"format": "[{asctime}] {levelname} {name}: {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "root": {"handlers": ["console"], "level": os.getenv("LOG_LEVEL", "INFO")},
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}

if LOG_DIR:
    # one rotating file per channel: payment flow, CRM, email
    for _name, _loggers in (
        ("payment-flow", ["payments", "bookings"]),
        ("salesforce", ["crm"]),
        ("email", ["payments.emails", "leads.emails"]),
    ):
        LOGGING["handlers"][_name] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": os.path.join(LOG_DIR, f"{_name}.log"),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "verbose",
        }
        for _logger in _loggers:
            LOGGING["loggers"].setdefault(_logger, {"handlers": ["console"], "level": "INFO", "propagate": False})
            LOGGING["loggers"][_logger]["handlers"].append(_name)
