# coding: utf-8
"""Exceptions raised by arcfeature. Every failure of a request against a
   feature service surfaces as a subclass of L{FeatureServiceError}; none are
   retried."""

__all__ = ['FeatureServiceError', 'InvalidEndpoint', 'ServiceUnavailable',
           'ServerError', 'MalformedMetadata', 'LayerNotFound',
           'InvalidFieldName', 'QueryRejected']

class FeatureServiceError(Exception):
    """Base for all errors raised talking to a feature service"""

class InvalidEndpoint(FeatureServiceError, ValueError):
    """The string given as a service URL is not an absolute http(s) URL"""

class ServiceUnavailable(FeatureServiceError):
    """The request could not be completed at the network or HTTP level"""

class ServerError(ServiceUnavailable):
    """Exception for server-side error responses to metadata requests"""
    def __init__(self, message, code=None, details=None):
        super(ServerError, self).__init__(message)
        self.code = code
        self.details = list(details or [])

class MalformedMetadata(FeatureServiceError):
    """A response could not be parsed into the expected structure"""

class LayerNotFound(FeatureServiceError, LookupError):
    """No layer or table with the requested id exists in the service"""

class InvalidFieldName(FeatureServiceError, ValueError):
    """One or more requested field names are not in the layer's fields"""
    def __init__(self, names, layer=None):
        self.names = list(names)
        super(InvalidFieldName, self).__init__(
            "Unknown field%s %s%s" % ("s" if len(self.names) > 1 else "",
                                      ", ".join(map(repr, self.names)),
                                      " in %r" % layer if layer else ""))

class QueryRejected(FeatureServiceError):
    """The server refused a query, usually over its where clause or field
       list"""
    def __init__(self, message, code=None, details=None):
        super(QueryRejected, self).__init__(message)
        self.code = code
        self.details = list(details or [])
