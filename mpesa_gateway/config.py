import os
from dotenv import load_dotenv

load_dotenv()


# Daraja base URLs
BASE_URLS = {
    "sandbox":    "https://sandbox.safaricom.co.ke",
    "production": "https://api.safaricom.co.ke",
}

# Daraja endpoint paths, keyed by operation
ROUTES = {
    "auth":              "/oauth/v1/generate?grant_type=client_credentials",
    "stkpush":           "/mpesa/stkpush/v1/processrequest",
    "stkquery":          "/mpesa/stkpushquery/v1/query",
    "reversal":          "/mpesa/reversal/v1/request",
    "c2bregister":       "/mpesa/c2b/v1/registerurl",
    "c2bsimulate":       "/mpesa/c2b/v1/simulate",
    "accountbalance":    "/mpesa/accountbalance/v1/query",
    "transactionstatus": "/mpesa/transactionstatus/v1/query",
    "b2c":               "/mpesa/b2c/v3/paymentrequest",
    "b2b":               "/mpesa/b2b/v1/paymentrequest",
}

KEYS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "keys")

# Public certificates downloaded from the Daraja portal
DEFAULT_CERTIFICATES = {
    "sandbox":    os.path.join(KEYS_DIR, "sandbox-cert.cer"),
    "production": os.path.join(KEYS_DIR, "production-cert.cer"),
}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Base configuration"""
    MPESA_ENV = os.getenv('MPESA_ENV', 'sandbox')

    MPESA_CONSUMER_KEY = os.getenv('MPESA_CONSUMER_KEY')
    MPESA_CONSUMER_SECRET = os.getenv('MPESA_CONSUMER_SECRET')

    # Initiator credentials, needed for reversal / balance / status / payouts
    MPESA_INITIATOR_PASSWORD = os.getenv('MPESA_INITIATOR_PASSWORD')
    MPESA_SECURITY_CREDENTIAL = os.getenv('MPESA_SECURITY_CREDENTIAL')
    MPESA_CERTIFICATE_PATH = os.getenv('MPESA_CERTIFICATE_PATH')

    MPESA_TIMEOUT = int(os.getenv('MPESA_TIMEOUT', '30'))
    MPESA_CACHE_TOKEN = _env_flag('MPESA_CACHE_TOKEN')

    MPESA_LOG_DIR = os.getenv('MPESA_LOG_DIR')


class SandboxConfig(Config):
    """Sandbox configuration"""
    MPESA_ENV = 'sandbox'


class ProductionConfig(Config):
    """Production configuration"""
    MPESA_ENV = 'production'


config = {
    'sandbox': SandboxConfig,
    'production': ProductionConfig,
    'default': Config
}
