from mpesa_gateway.services.http_service import HttpService
from mpesa_gateway.services.auth_service import AuthService

__all__ = ['HttpService', 'AuthService']
