"""
Connector error types
"""


class ConnectorError(Exception):
    """Base error for external data source failures"""


class CommerceNotAuthorizedError(ConnectorError):
    """Shopify has not been authorized (no access token available)"""


class OrderFeedError(ConnectorError):
    """The primary order feed could not be fetched"""
