from app.security.headers.csp import (
    CSPMode,
    build_csp_policy,
    generate_nonce,
    get_security_headers,
    is_valid_nonce,
)
from app.security.headers.https import (
    get_hsts_header,
    get_https_enforcement_headers,
    should_redirect_to_https,
)

__all__ = [
    "CSPMode",
    "build_csp_policy",
    "generate_nonce",
    "get_hsts_header",
    "get_https_enforcement_headers",
    "get_security_headers",
    "is_valid_nonce",
    "should_redirect_to_https",
]
