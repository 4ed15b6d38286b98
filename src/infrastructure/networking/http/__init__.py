from .structs import HTTPMethod, RestConfig
from .auth import NonceSequencer, RequestSigner, SignedRequest
from .transport import RestTransport, AiohttpRestTransport

__all__ = [
    "HTTPMethod",
    "RestConfig",
    "NonceSequencer",
    "RequestSigner",
    "SignedRequest",
    "RestTransport",
    "AiohttpRestTransport",
]
