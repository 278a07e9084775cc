# Shared Common Library for the Training Portal services.
# HTTP service clients, API exceptions, gateway authentication,
# permissions and middleware used across services.

__version__ = "1.0.0"
